"""
Input Validation Utilities
Validates CRM request payloads, query parameters and Excel uploads.

Validators return (is_valid, error_message) tuples; `ensure_valid` turns a
failed tuple into a ValidationError for the service layer.
"""
import re
import os
from typing import Dict, Any, List, Optional, Tuple
from werkzeug.datastructures import FileStorage
import logging

from app.utils.response import ValidationError, InvalidParamsError

logger = logging.getLogger(__name__)

ALLOWED_EXCEL_EXTENSIONS = {'xlsx', 'xlsm'}
MAX_EXCEL_SIZE = 20 * 1024 * 1024  # 20MB

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Zero-padded 24h clock, e.g. 08:00 or 22:30
HHMM_PATTERN = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')

CUSTOMER_LENGTH_LIMITS = {
    'name': 100,
    'contact_name': 50,
    'province': 20,
    'city': 20,
    'district': 20,
    'address': 200,
    'category': 50,
    'source': 50,
    'remark': 1000,
}


def ensure_valid(result: Tuple[bool, Optional[str]]):
    """Raise ValidationError when a validator tuple reports failure."""
    is_valid, error = result
    if not is_valid:
        raise ValidationError(error)


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate that all required fields are present in the data

    Args:
        data: Dictionary of input data
        required_fields: List of required field names

    Returns:
        Tuple of (is_valid, error_message)
    """
    missing_fields = [field for field in required_fields if field not in data or data[field] is None or data[field] == '']

    if missing_fields:
        return False, f"缺少必填字段: {', '.join(missing_fields)}"

    return True, None


def validate_string_length(value: str, min_length: int = 0, max_length: int = 1000,
                           field: str = '内容') -> Tuple[bool, Optional[str]]:
    """
    Validate string length is within acceptable range

    Args:
        value: String to validate
        min_length: Minimum allowed length
        max_length: Maximum allowed length
        field: Field label used in the error message

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{field}必须是字符串"

    if len(value) < min_length:
        return False, f"{field}长度不能少于{min_length}个字符"

    if len(value) > max_length:
        return False, f"{field}长度不能超过{max_length}个字符"

    return True, None


def validate_number_range(value, min_value=None, max_value=None, field: str = '数值') -> Tuple[bool, Optional[str]]:
    """
    Validate number is within acceptable range

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False, f"{field}必须是数字"

    if min_value is not None and value < min_value:
        return False, f"{field}不能小于{min_value}"

    if max_value is not None and value > max_value:
        return False, f"{field}不能大于{max_value}"

    return True, None


def validate_choice(value, choices, field: str = '取值') -> Tuple[bool, Optional[str]]:
    if value not in choices:
        return False, f"无效的{field}: {value}"
    return True, None


def validate_quiet_time(value: str) -> Tuple[bool, Optional[str]]:
    """Validate an HH:MM quiet-time boundary."""
    if not isinstance(value, str) or not HHMM_PATTERN.match(value):
        return False, f"时间格式必须为HH:MM: {value}"
    return True, None


def validate_customer_request(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """
    Validate a customer create/update payload

    Args:
        data: Request payload
        partial: When True only the fields present are checked (updates)
    """
    if not isinstance(data, dict):
        return False, "请求体必须是JSON对象"

    if not partial:
        is_valid, error = validate_required_fields(data, ['name'])
        if not is_valid:
            return False, error

    for field, max_length in CUSTOMER_LENGTH_LIMITS.items():
        if field in data and data[field] is not None:
            min_length = 1 if field == 'name' else 0
            is_valid, error = validate_string_length(data[field], min_length, max_length, field)
            if not is_valid:
                return False, error

    for field in ('state', 'level'):
        if field in data and data[field] is not None:
            is_valid, error = validate_number_range(data[field], 0, 10, field)
            if not is_valid:
                return False, error

    for field in ('phones', 'wechats', 'products', 'tags'):
        if field in data and data[field] is not None:
            if not isinstance(data[field], list) or not all(isinstance(v, str) for v in data[field]):
                return False, f"{field}必须是字符串数组"

    return True, None


def validate_int_list(values, field: str = 'ids') -> Tuple[bool, Optional[str]]:
    if not isinstance(values, list):
        return False, f"{field}必须是数组"
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        return False, f"{field}必须是整数数组"
    return True, None


# =============================================================================
# QUERY PARAMETERS
# =============================================================================

def parse_int(value, field: str, default: Optional[int] = None) -> Optional[int]:
    """
    Parse an integer query/path value.

    Raises:
        InvalidParamsError: if the value is present but not an integer
    """
    if value is None or value == '':
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidParamsError(f"无效的{field}: {value}")


def parse_pagination(args, size_key: str = 'page_size', default_size: int = DEFAULT_PAGE_SIZE) -> Tuple[int, int]:
    """
    Read page and page size from request args.

    A page below 1 becomes 1; a size outside 1..MAX_PAGE_SIZE falls back to
    the default size.
    """
    page = parse_int(args.get('page'), 'page', 1)
    size = parse_int(args.get(size_key), size_key, default_size)
    if page < 1:
        page = 1
    if size <= 0 or size > MAX_PAGE_SIZE:
        size = default_size
    return page, size


def parse_id_list(value: Optional[str], field: str = 'ids') -> List[int]:
    """Parse a comma separated id list such as '1,2,3'."""
    if not value:
        return []
    result = []
    for part in value.split(','):
        part = part.strip()
        if part:
            result.append(parse_int(part, field))
    return result


# =============================================================================
# FILE UPLOADS
# =============================================================================

def validate_file_extension(filename: str, allowed_extensions: set) -> Tuple[bool, Optional[str]]:
    """
    Validate file has an allowed extension

    Args:
        filename: Filename to check
        allowed_extensions: Set of allowed extensions (without dots)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not filename or '.' not in filename:
        return False, "文件必须带有扩展名"

    extension = filename.rsplit('.', 1)[1].lower()

    if extension not in allowed_extensions:
        return False, f"不支持的文件类型，仅支持: {', '.join(sorted(allowed_extensions))}"

    return True, None


def validate_excel_upload(file: FileStorage) -> Tuple[bool, Optional[str]]:
    """
    Validate an uploaded Excel workbook

    The extension is checked on the raw filename since customer sheets are
    usually named in Chinese.
    """
    if not file or not file.filename:
        return False, "未上传文件"

    is_valid, error = validate_file_extension(file.filename, ALLOWED_EXCEL_EXTENSIONS)
    if not is_valid:
        return False, error

    file.seek(0, os.SEEK_END)
    file_size = file.tell()
    file.seek(0)

    if file_size == 0:
        return False, "文件为空"

    if file_size > MAX_EXCEL_SIZE:
        return False, f"文件过大（最大{MAX_EXCEL_SIZE // (1024 * 1024)}MB）"

    logger.info(f"Excel upload accepted: {file.filename} ({file_size} bytes)")
    return True, None


# =============================================================================
# REQUEST BODIES
# =============================================================================

def parse_json_body(req, required: bool = True) -> Dict[str, Any]:
    """
    Read a JSON object from the request body.

    Raises:
        InvalidParamsError: if the body is missing or not a JSON object
    """
    data = req.get_json(silent=True)
    if data is None and not required:
        return {}
    if not isinstance(data, dict):
        raise InvalidParamsError('请求体必须是JSON对象')
    return data
