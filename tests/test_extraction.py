"""Tests for query field extraction and validation."""

from agents import extraction


class TestValidation:
    """Test email and phone shape rules."""

    def test_valid_emails(self):
        """Test standard email shapes are accepted."""
        assert extraction.is_valid_email("john@example.com")
        assert extraction.is_valid_email("first.last+tag@mail.example.co")

    def test_invalid_emails(self):
        """Test malformed emails are rejected."""
        assert not extraction.is_valid_email("john@example")
        assert not extraction.is_valid_email("john.example.com")
        assert not extraction.is_valid_email("john@@example.com")

    def test_phone_normalisation(self):
        """Test spaces, dashes and parentheses are stripped."""
        assert extraction.normalize_phone("+1 (555) 123-4567") == "+15551234567"

    def test_valid_phones(self):
        """Test 10-15 digits with optional plus are accepted."""
        assert extraction.is_valid_phone("+1 (555) 123-4567")
        assert extraction.is_valid_phone("9876543210")
        assert extraction.is_valid_phone("+123456789012345")

    def test_invalid_phones(self):
        """Test too short, too long or non-digit phones are rejected."""
        assert not extraction.is_valid_phone("12345")
        assert not extraction.is_valid_phone("+1234567890123456")
        assert not extraction.is_valid_phone("555-CALL-NOW")


class TestExtraction:
    """Test multilingual extraction patterns."""

    def test_extract_email(self):
        """Test email extraction from free text."""
        assert extraction.extract_email("Find client john@example.com please") == "john@example.com"
        assert extraction.extract_email("Find client John") is None

    def test_extract_client_name(self):
        """Test name extraction after name keywords."""
        assert extraction.extract_client_name("Find client with name John Smith") == "John Smith"
        assert extraction.extract_client_name("नाम राम शर्मा") == "राम शर्मा"

    def test_extract_order_id(self):
        """Test order ids with and without a hash."""
        assert extraction.extract_order_id("status of order #ORD-1001?") == "ORD-1001"
        assert extraction.extract_order_id("Was order ORD-1001 paid?") == "ORD-1001"
        assert extraction.extract_order_id("অর্ডার #123 এর অবস্থা") == "123"
        assert extraction.extract_order_id("what is my order status") is None

    def test_extract_create_order_english(self):
        """Test service and client email from an English request."""
        data = extraction.extract_create_order(
            "Create order for Yoga Beginner for client john@x.com"
        )
        assert data == {
            "serviceName": "Yoga Beginner",
            "serviceType": "course",
            "clientEmail": "john@x.com",
        }

    def test_extract_create_order_class_and_name(self):
        """Test class suffix sets the service type and names are kept."""
        data = extraction.extract_create_order(
            "Create an order for Morning Flow class for client Maria Lopez"
        )
        assert data["serviceName"] == "Morning Flow"
        assert data["serviceType"] == "class"
        assert data["clientName"] == "Maria Lopez"

    def test_extract_create_order_hindi(self):
        """Test Hindi word order (client first, then service)."""
        data = extraction.extract_create_order(
            "ग्राहक john@example.com के लिए योग कोर्स का ऑर्डर बनाएं"
        )
        assert data["clientEmail"] == "john@example.com"
        assert data["serviceName"] == "योग"
        assert data["serviceType"] == "course"

    def test_extract_create_order_unparseable(self):
        """Test requests without service and client yield nothing."""
        assert extraction.extract_create_order("create an order") == {}

    def test_extract_create_client(self):
        """Test name, email and phone from an English request."""
        data = extraction.extract_create_client(
            "Create client named Jane Doe with email jane@example.com and phone +1 555 123 4567"
        )
        assert data == {
            "name": "Jane Doe",
            "email": "jane@example.com",
            "phone": "+15551234567",
        }

    def test_extract_create_client_comma_separated(self):
        """Test an unlabelled, comma separated request."""
        data = extraction.extract_create_client(
            "Add a new client Jane Doe, jane@example.com, 9876543210"
        )
        assert data["name"] == "Jane Doe"
        assert data["email"] == "jane@example.com"
        assert data["phone"] == "9876543210"

    def test_extract_create_client_missing_fields(self):
        """Test only present fields are returned."""
        data = extraction.extract_create_client("Create client named Jane Doe")
        assert data == {"name": "Jane Doe"}

    def test_extract_class_name(self):
        """Test class name after "for", ignoring relative periods."""
        assert extraction.extract_class_name(
            "What is the attendance percentage for Morning Flow?"
        ) == "Morning Flow"
        assert extraction.extract_class_name("attendance report for this week") is None
        assert extraction.extract_class_name("Show attendance statistics") is None
