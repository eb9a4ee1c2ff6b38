"""
Excel Service - customer import from and export to xlsx workbooks.
"""

import io
import logging
import re
from typing import Dict, List, Any

import openpyxl
from openpyxl.styles import Font, Alignment
from openpyxl.utils import get_column_letter
from sqlalchemy.orm import Session

from app.utils.helpers import format_datetime
from app.utils.response import ValidationError, InvalidParamsError
from database.models import Customer
from validators import ensure_valid, validate_customer_request

logger = logging.getLogger(__name__)

# Header label -> column, both Chinese and English labels are accepted
HEADER_ALIASES = {
    '客户名称': 'name', 'name': 'name',
    '联系人': 'contact_name', 'contact_name': 'contact_name',
    '电话': 'phones', 'phones': 'phones',
    '微信': 'wechats', 'wechats': 'wechats',
    '省份': 'province', 'province': 'province',
    '城市': 'city', 'city': 'city',
    '区县': 'district', 'district': 'district',
    '地址': 'address', 'address': 'address',
    '分类': 'category', 'category': 'category',
    '标签': 'tags', 'tags': 'tags',
    '备注': 'remark', 'remark': 'remark',
    '来源': 'source', 'source': 'source',
}

LIST_COLUMNS = ('phones', 'wechats', 'tags')
MULTI_VALUE_SEPARATOR = re.compile(r'[,，;；]')

IMPORT_SOURCE = 'excel'

EXPORT_COLUMNS = [
    ('ID', lambda c: c.id),
    ('客户名称', lambda c: c.name or ''),
    ('联系人', lambda c: c.contact_name or ''),
    ('电话', lambda c: ','.join(c.phones or [])),
    ('微信', lambda c: ','.join(c.wechats or [])),
    ('省份', lambda c: c.province or ''),
    ('城市', lambda c: c.city or ''),
    ('区县', lambda c: c.district or ''),
    ('地址', lambda c: c.address or ''),
    ('分类', lambda c: c.category or ''),
    ('标签', lambda c: ','.join(c.tags or [])),
    ('状态', lambda c: c.state_description),
    ('级别', lambda c: c.level_description),
    ('来源', lambda c: c.source or ''),
    ('备注', lambda c: c.remark or ''),
    ('最后下单', lambda c: format_datetime(c.last_order_date)),
    ('创建时间', lambda c: format_datetime(c.created_at)),
]

EXPORT_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def split_values(value) -> List[str]:
    """Split a multi-value cell on ASCII and full-width commas/semicolons."""
    if value is None:
        return []
    return [part.strip() for part in MULTI_VALUE_SEPARATOR.split(str(value)) if part.strip()]


def map_headers(header_row) -> Dict[int, str]:
    """Map column index -> customer field for the recognised headers."""
    mapping = {}
    for index, label in enumerate(header_row):
        if label is None:
            continue
        field = HEADER_ALIASES.get(str(label).strip())
        if field:
            mapping[index] = field
    return mapping


def row_to_customer_data(row, mapping: Dict[int, str]) -> Dict[str, Any]:
    data = {}
    for index, field in mapping.items():
        value = row[index] if index < len(row) else None
        if field in LIST_COLUMNS:
            data[field] = split_values(value)
        elif value is not None:
            # Phone numbers come back from Excel as floats
            if isinstance(value, float) and value.is_integer():
                value = int(value)
            data[field] = str(value).strip()
    return data


class ExcelService:
    """Imports and exports customers as Excel workbooks."""

    def __init__(self, session: Session):
        self.session = session

    def import_customers(self, stream) -> Dict[str, Any]:
        """
        Import customers from the first sheet of a workbook.

        Args:
            stream: File-like object with xlsx content

        Returns:
            Dict with imported, skipped and errors
        """
        try:
            workbook = openpyxl.load_workbook(stream, read_only=True, data_only=True)
        except Exception as e:
            logger.warning(f"Unreadable Excel upload: {e}")
            raise InvalidParamsError('无法读取Excel文件')

        result = {'imported': 0, 'skipped': 0, 'errors': []}
        try:
            sheet = workbook.worksheets[0]
            rows = sheet.iter_rows(values_only=True)
            header = next(rows, None)
            mapping = map_headers(header or [])
            if 'name' not in mapping.values():
                raise InvalidParamsError('Excel缺少客户名称列')

            for row_number, row in enumerate(rows, start=2):
                data = row_to_customer_data(row, mapping)
                if not data.get('name'):
                    result['skipped'] += 1
                    continue
                try:
                    ensure_valid(validate_customer_request(data))
                except ValidationError as e:
                    result['skipped'] += 1
                    result['errors'].append(f"第{row_number}行: {e.message}")
                    continue

                customer = Customer(import_source=IMPORT_SOURCE, **data)
                self.session.add(customer)
                result['imported'] += 1
        finally:
            workbook.close()

        self.session.flush()
        logger.info(
            f"Excel import finished: {result['imported']} imported, "
            f"{result['skipped']} skipped"
        )
        return result

    def export_customers(self) -> io.BytesIO:
        """Write all customers to an in-memory xlsx workbook."""
        workbook = openpyxl.Workbook()
        sheet = workbook.active
        sheet.title = '客户列表'

        sheet.append([label for label, _ in EXPORT_COLUMNS])
        for cell in sheet[1]:
            cell.font = Font(bold=True)
            cell.alignment = Alignment(horizontal='center')

        customers = self.session.query(Customer).order_by(Customer.id).all()
        for customer in customers:
            sheet.append([getter(customer) for _, getter in EXPORT_COLUMNS])

        for index in range(1, len(EXPORT_COLUMNS) + 1):
            sheet.column_dimensions[get_column_letter(index)].width = 18

        output = io.BytesIO()
        workbook.save(output)
        output.seek(0)
        logger.info(f"Exported {len(customers)} customers to Excel")
        return output
