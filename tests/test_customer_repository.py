"""
Tests for customer repository queries and updates
"""
import pytest
from datetime import datetime
from unittest.mock import patch
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Session

from app.utils.response import InvalidParamsError, NotFoundError, ValidationError
from database.models import Customer
from services.customer_repository import CustomerRepository

NOW = datetime(2024, 5, 20, 10, 0)


def compiled(query):
    return query.statement.compile(dialect=postgresql.dialect())


@pytest.mark.unit
class TestSearchQueries:
    """Tests for the compiled search SQL"""

    def test_text_search_columns(self):
        """Test that the text search covers name, contact, phones and location"""
        query = CustomerRepository(Session()).build_search_query('成都')
        sql = str(compiled(query))
        for column in ('customers.name', 'customers.contact_name', 'customers.remark',
                       'customers.address', 'customers.city'):
            assert f'{column} ILIKE' in sql
        assert 'CAST(customers.phones AS TEXT) ILIKE' in sql
        assert '%成都%' in compiled(query).params.values()

    def test_system_tags_overlap(self):
        """Test that system tags use array overlap"""
        sql = str(compiled(CustomerRepository(Session()).build_search_query(None, [1, 2])))
        assert 'customers.system_tags &&' in sql
        assert 'ILIKE' not in sql

    def test_no_filters(self):
        """Test that an empty search has no WHERE clause"""
        assert 'WHERE' not in str(compiled(CustomerRepository(Session()).build_search_query()))

    def test_keyword_any_of_tags(self):
        """Test that quick search matches any of the system tags"""
        sql = str(compiled(CustomerRepository(Session()).build_keyword_query('王', [3, 4])))
        assert sql.count('ANY (customers.system_tags)') == 2
        assert 'customers.contact_name ILIKE' in sql

    def test_never_ordered(self):
        """Test the never_ordered special list"""
        sql = str(compiled(CustomerRepository(Session()).build_special_query('never_ordered')))
        assert 'customers.last_order_date IS NULL' in sql

    def test_no_order_half_year(self):
        """Test the half-year cutoff"""
        with patch('services.customer_repository.now', return_value=NOW):
            query = CustomerRepository(Session()).build_special_query('no_order_half_year')
        sql = str(compiled(query))
        assert 'customers.last_order_date IS NOT NULL' in sql
        assert datetime(2023, 11, 20, 10, 0) in compiled(query).params.values()

    def test_unknown_special_type(self):
        """Test that an unknown special type is rejected"""
        with pytest.raises(InvalidParamsError):
            CustomerRepository(Session()).build_special_query('vip')


@pytest.mark.unit
class TestCustomerCrud:
    """Tests for customer CRUD with a mocked session"""

    def test_get_missing(self, mock_session):
        """Test that an unknown id raises NotFoundError"""
        mock_session.get.return_value = None
        with pytest.raises(NotFoundError):
            CustomerRepository(mock_session).get_customer(404)

    def test_create(self, mock_session, sample_customer_data):
        """Test that create adds and flushes a customer"""
        data = CustomerRepository(mock_session).create_customer(
            dict(sample_customer_data, last_called='2024-05-01 09:00:00')
        )
        added = mock_session.add.call_args[0][0]
        assert isinstance(added, Customer)
        assert added.last_called == datetime(2024, 5, 1, 9, 0)
        mock_session.flush.assert_called_once()
        assert data['name'] == '成都小王服饰'
        assert data['phones'] == ['13800000000']

    def test_create_requires_name(self, mock_session):
        """Test that create validates the payload"""
        with pytest.raises(ValidationError):
            CustomerRepository(mock_session).create_customer({'city': '成都'})
        mock_session.add.assert_not_called()

    def test_create_bad_datetime(self, mock_session):
        """Test that a bad datetime field is an invalid parameter"""
        with pytest.raises(InvalidParamsError):
            CustomerRepository(mock_session).create_customer({'name': 'A', 'last_called': 'yesterday'})

    def test_update_partial(self, mock_session):
        """Test that update only touches the given fields"""
        customer = Customer(id=1, name='旧名', city='成都')
        mock_session.get.return_value = customer
        data = CustomerRepository(mock_session).update_customer(1, {'name': '新名'})
        assert data['name'] == '新名'
        assert data['city'] == '成都'

    def test_delete_missing(self, mock_session):
        """Test that deleting nothing raises NotFoundError"""
        mock_session.query.return_value.filter.return_value.delete.return_value = 0
        with pytest.raises(NotFoundError):
            CustomerRepository(mock_session).delete_customer(9)

    def test_update_favors_wraps_list(self, mock_session):
        """Test that favors are stored under a 'favors' key"""
        customer = Customer(id=1, name='A')
        mock_session.get.return_value = customer
        CustomerRepository(mock_session).update_favors(1, [{'name': '连衣裙'}])
        assert customer.favors == {'favors': [{'name': '连衣裙'}]}

    def test_update_favors_requires_list(self, mock_session):
        """Test that favors must be an array"""
        with pytest.raises(InvalidParamsError):
            CustomerRepository(mock_session).update_favors(1, {'name': '连衣裙'})

    def test_update_system_tags(self, mock_session):
        """Test system tag replacement and validation"""
        customer = Customer(id=1, name='A')
        mock_session.get.return_value = customer
        CustomerRepository(mock_session).update_system_tags(1, [5, 6])
        assert customer.system_tags == [5, 6]
        with pytest.raises(ValidationError):
            CustomerRepository(mock_session).update_system_tags(1, ['5'])

    def test_update_remark_too_long(self, mock_session):
        """Test the remark length limit"""
        with pytest.raises(ValidationError):
            CustomerRepository(mock_session).update_remark(1, 'x' * 1001)
