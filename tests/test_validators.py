"""
Tests for input validation utilities
"""
import pytest
from io import BytesIO
from unittest.mock import Mock
from werkzeug.datastructures import FileStorage, MultiDict

from app.utils.response import ValidationError, InvalidParamsError
from validators import (
    ensure_valid,
    validate_required_fields,
    validate_string_length,
    validate_number_range,
    validate_choice,
    validate_quiet_time,
    validate_customer_request,
    validate_int_list,
    validate_file_extension,
    validate_excel_upload,
    parse_int,
    parse_pagination,
    parse_id_list,
    parse_json_body,
    ALLOWED_EXCEL_EXTENSIONS,
    DEFAULT_PAGE_SIZE,
)


@pytest.mark.unit
class TestRequiredFields:
    """Tests for required fields validation"""

    def test_validate_all_fields_present(self):
        """Test validation passes when all fields present"""
        data = {'customer_id': 1, 'title': '回访'}
        is_valid, error = validate_required_fields(data, ['customer_id', 'title'])
        assert is_valid is True
        assert error is None

    def test_validate_missing_field(self):
        """Test validation fails when field missing"""
        is_valid, error = validate_required_fields({'title': '回访'}, ['customer_id', 'title'])
        assert is_valid is False
        assert 'customer_id' in error

    def test_validate_empty_and_none_fields(self):
        """Test validation fails for empty string and None"""
        assert validate_required_fields({'title': ''}, ['title'])[0] is False
        assert validate_required_fields({'title': None}, ['title'])[0] is False

    def test_ensure_valid_raises(self):
        """Test ensure_valid turns a failed tuple into ValidationError"""
        with pytest.raises(ValidationError) as exc_info:
            ensure_valid((False, '缺少必填字段: name'))
        assert exc_info.value.message == '缺少必填字段: name'

    def test_ensure_valid_passes(self):
        """Test ensure_valid is silent for a passing tuple"""
        ensure_valid((True, None))


@pytest.mark.unit
class TestScalarValidation:
    """Tests for string, number and choice validation"""

    def test_string_too_long(self):
        """Test that an overlong string fails with the field label"""
        is_valid, error = validate_string_length('x' * 11, max_length=10, field='name')
        assert is_valid is False
        assert 'name' in error

    def test_string_not_str(self):
        """Test that non-strings fail"""
        assert validate_string_length(123)[0] is False

    def test_number_range(self):
        """Test number bounds"""
        assert validate_number_range(5, 0, 10)[0] is True
        assert validate_number_range(-1, 0, 10)[0] is False
        assert validate_number_range(11, 0, 10)[0] is False

    def test_bool_is_not_a_number(self):
        """Test that booleans are rejected as numbers"""
        assert validate_number_range(True, 0, 10)[0] is False

    def test_choice(self):
        """Test choice validation"""
        assert validate_choice('high', ('low', 'high'))[0] is True
        is_valid, error = validate_choice('huge', ('low', 'high'), '优先级')
        assert is_valid is False
        assert '优先级' in error

    @pytest.mark.parametrize('value,expected', [
        ('22:00', True),
        ('08:00', True),
        ('23:59', True),
        ('24:00', False),
        ('8:00', False),
        ('0800', False),
        (None, False),
    ])
    def test_quiet_time(self, value, expected):
        """Test HH:MM validation"""
        assert validate_quiet_time(value)[0] is expected

    def test_int_list(self):
        """Test integer list validation"""
        assert validate_int_list([1, 2, 3])[0] is True
        assert validate_int_list('1,2')[0] is False
        assert validate_int_list([1, '2'])[0] is False
        assert validate_int_list([True])[0] is False


@pytest.mark.unit
class TestCustomerRequest:
    """Tests for customer payload validation"""

    def test_valid_customer(self, sample_customer_data):
        """Test that a complete payload passes"""
        assert validate_customer_request(sample_customer_data) == (True, None)

    def test_missing_name(self):
        """Test that create requires a name"""
        is_valid, error = validate_customer_request({'city': '成都'})
        assert is_valid is False
        assert 'name' in error

    def test_partial_update_without_name(self):
        """Test that updates may omit the name"""
        assert validate_customer_request({'city': '成都'}, partial=True)[0] is True

    def test_empty_name_on_update(self):
        """Test that an explicit empty name is rejected"""
        assert validate_customer_request({'name': ''}, partial=True)[0] is False

    def test_phones_must_be_string_list(self):
        """Test array field typing"""
        is_valid, error = validate_customer_request({'name': 'A', 'phones': '138'})
        assert is_valid is False
        assert 'phones' in error

    def test_state_out_of_range(self):
        """Test state bounds"""
        assert validate_customer_request({'name': 'A', 'state': 99})[0] is False

    def test_non_dict_body(self):
        """Test that a non-object body fails"""
        assert validate_customer_request(['name'])[0] is False


@pytest.mark.unit
class TestQueryParameters:
    """Tests for query parameter parsing"""

    def test_parse_int(self):
        """Test integer parsing and defaults"""
        assert parse_int('42', 'id') == 42
        assert parse_int(None, 'id', 7) == 7
        assert parse_int('', 'id') is None

    def test_parse_int_invalid(self):
        """Test that a non-integer raises InvalidParamsError"""
        with pytest.raises(InvalidParamsError):
            parse_int('abc', 'user_id')

    def test_pagination_defaults(self):
        """Test pagination defaults"""
        assert parse_pagination(MultiDict()) == (1, DEFAULT_PAGE_SIZE)

    def test_pagination_clamps(self):
        """Test that out-of-range values fall back"""
        assert parse_pagination(MultiDict({'page': '0', 'page_size': '1000'})) == (1, DEFAULT_PAGE_SIZE)
        assert parse_pagination(MultiDict({'page': '3', 'page_size': '50'})) == (3, 50)

    def test_pagination_custom_size_key(self):
        """Test reading the size from another key"""
        assert parse_pagination(MultiDict({'limit': '10'}), size_key='limit') == (1, 10)

    def test_parse_id_list(self):
        """Test comma separated id parsing"""
        assert parse_id_list('1, 2,,3') == [1, 2, 3]
        assert parse_id_list(None) == []


@pytest.mark.unit
class TestFileValidation:
    """Tests for Excel upload validation"""

    def test_valid_extension(self):
        """Test accepted workbook extensions"""
        assert validate_file_extension('客户列表.xlsx', ALLOWED_EXCEL_EXTENSIONS)[0] is True
        assert validate_file_extension('data.XLSM', ALLOWED_EXCEL_EXTENSIONS)[0] is True

    def test_invalid_extension(self):
        """Test rejected extensions"""
        assert validate_file_extension('data.csv', ALLOWED_EXCEL_EXTENSIONS)[0] is False
        assert validate_file_extension('noextension', ALLOWED_EXCEL_EXTENSIONS)[0] is False

    def test_excel_upload_ok(self):
        """Test that a non-empty xlsx upload passes"""
        file = FileStorage(stream=BytesIO(b'PK\x03\x04data'), filename='客户.xlsx')
        assert validate_excel_upload(file) == (True, None)
        assert file.stream.tell() == 0

    def test_excel_upload_empty(self):
        """Test that an empty file fails"""
        file = FileStorage(stream=BytesIO(b''), filename='客户.xlsx')
        is_valid, error = validate_excel_upload(file)
        assert is_valid is False
        assert error == '文件为空'

    def test_excel_upload_missing(self):
        """Test that a missing file fails"""
        assert validate_excel_upload(None) == (False, '未上传文件')


@pytest.mark.unit
class TestJsonBody:
    """Tests for JSON body parsing"""

    def test_dict_body(self):
        """Test that an object body is returned"""
        req = Mock()
        req.get_json.return_value = {'name': 'A'}
        assert parse_json_body(req) == {'name': 'A'}
        req.get_json.assert_called_once_with(silent=True)

    def test_missing_body_required(self):
        """Test that a missing body raises when required"""
        req = Mock()
        req.get_json.return_value = None
        with pytest.raises(InvalidParamsError):
            parse_json_body(req)

    def test_missing_body_optional(self):
        """Test that a missing optional body becomes {}"""
        req = Mock()
        req.get_json.return_value = None
        assert parse_json_body(req, required=False) == {}

    def test_list_body(self):
        """Test that a JSON array is rejected"""
        req = Mock()
        req.get_json.return_value = [1, 2]
        with pytest.raises(InvalidParamsError):
            parse_json_body(req)
