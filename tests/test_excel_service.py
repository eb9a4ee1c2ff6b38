"""
Tests for Excel import and export
"""
import io
import pytest
import openpyxl
from datetime import datetime

from app.utils.response import InvalidParamsError
from database.models import Customer
from services.excel_service import (
    ExcelService,
    split_values,
    map_headers,
    row_to_customer_data,
    EXPORT_COLUMNS,
)


def workbook_bytes(rows):
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    output = io.BytesIO()
    workbook.save(output)
    output.seek(0)
    return output


@pytest.mark.unit
class TestCellParsing:
    """Tests for header mapping and cell conversion"""

    def test_split_values(self):
        """Test ASCII and full-width separators"""
        assert split_values('138，139; 137；136,') == ['138', '139', '137', '136']
        assert split_values(None) == []
        assert split_values(13800000000) == ['13800000000']

    def test_map_headers(self):
        """Test Chinese and English header labels"""
        mapping = map_headers(['客户名称', None, 'city', '未知列', ' 电话 '])
        assert mapping == {0: 'name', 2: 'city', 4: 'phones'}

    def test_row_to_customer_data(self):
        """Test list columns and integer floats"""
        data = row_to_customer_data(
            ('小王服饰', '13800000000,13900000000', 12345.0, None),
            {0: 'name', 1: 'phones', 2: 'remark', 3: 'city'}
        )
        assert data == {
            'name': '小王服饰',
            'phones': ['13800000000', '13900000000'],
            'remark': '12345',
        }


@pytest.mark.unit
class TestImport:
    """Tests for importing customers"""

    def test_import_rows(self, mock_session):
        """Test that valid rows are imported and blank names skipped"""
        stream = workbook_bytes([
            ['客户名称', '联系人', '电话', '标签'],
            ['小王服饰', '王小明', '13800000000', '重点，新客'],
            [None, '无名', '139', None],
            ['老李鞋业', None, None, None],
        ])

        result = ExcelService(mock_session).import_customers(stream)

        assert result == {'imported': 2, 'skipped': 1, 'errors': []}
        customers = [call[0][0] for call in mock_session.add.call_args_list]
        assert all(isinstance(c, Customer) for c in customers)
        assert customers[0].tags == ['重点', '新客']
        assert customers[0].import_source == 'excel'
        assert customers[1].phones == []
        mock_session.flush.assert_called_once()

    def test_invalid_row_reported(self, mock_session):
        """Test that rows failing validation are reported with their row number"""
        stream = workbook_bytes([
            ['客户名称', '省份'],
            ['小王服饰', '四' * 30],
        ])
        result = ExcelService(mock_session).import_customers(stream)
        assert result['imported'] == 0
        assert result['skipped'] == 1
        assert result['errors'][0].startswith('第2行')

    def test_missing_name_column(self, mock_session):
        """Test that a sheet without a name column is rejected"""
        stream = workbook_bytes([['联系人'], ['王小明']])
        with pytest.raises(InvalidParamsError, match='Excel缺少客户名称列'):
            ExcelService(mock_session).import_customers(stream)

    def test_not_a_workbook(self, mock_session):
        """Test that garbage bytes are rejected"""
        with pytest.raises(InvalidParamsError, match='无法读取Excel文件'):
            ExcelService(mock_session).import_customers(io.BytesIO(b'not a workbook'))


@pytest.mark.unit
class TestExport:
    """Tests for exporting customers"""

    def test_export(self, mock_session):
        """Test the exported header and row values"""
        mock_session.query.return_value.order_by.return_value.all.return_value = [
            Customer(id=1, name='小王服饰', phones=['138', '139'], state=1, level=2,
                     created_at=datetime(2024, 5, 1, 9, 0)),
        ]

        output = ExcelService(mock_session).export_customers()

        sheet = openpyxl.load_workbook(output).active
        rows = list(sheet.iter_rows(values_only=True))
        assert list(rows[0]) == [label for label, _ in EXPORT_COLUMNS]
        assert rows[1][0] == 1
        assert rows[1][1] == '小王服饰'
        assert rows[1][3] == '138,139'
        assert '2024-05-01 09:00:00' in rows[1]
        assert sheet['A1'].font.bold is True
