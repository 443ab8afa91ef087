"""Pattern-based field extraction for support and dashboard queries.

Patterns cover English, Hindi and Bengali phrasings. Every helper returns
``None`` (or an empty dict) when nothing usable is found; callers turn that
into a clarification prompt.
"""

import re
from typing import Dict, Optional


EMAIL_PATTERN = re.compile(r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})")
EMAIL_SHAPE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

PHONE_PATTERN = re.compile(r"(\+?[\d\s\-()]{10,})")
PHONE_SHAPE = re.compile(r"^\+?\d{10,15}$")
LABELLED_PHONE_PATTERN = re.compile(
    r"(?:phone|mobile|contact|फोन|फ़ोन|मोबाइल|ফোন|মোবাইল)\s*(?:number|नंबर|নম্বর)?\s*:?\s*(\+?[\d\s\-()]{7,})",
    re.IGNORECASE,
)

NAME_PATTERNS = [
    re.compile(r"\bname\s+([^@\n,]+?)\s*[?.!]*$", re.IGNORECASE),
    re.compile(r"नाम\s+([^@\n,]+?)\s*[?.!।]*$"),
    re.compile(r"নাম\s+([^@\n,]+?)\s*[?.!।]*$"),
]

ORDER_ID_PATTERN = re.compile(
    r"(?:order|ऑर्डर|অর্ডার)\s*#\s*([\w-]+)|(?:order|ऑर्डर|অর্ডার)\s+([\w-]*\d[\w-]*)",
    re.IGNORECASE,
)

# (service, client) in English word order
CREATE_ORDER_EN = re.compile(
    r"\bfor\s+(?:the\s+)?(.+?)\s+for\s+(?:the\s+)?client\s+(.+?)\s*[?.!]*$",
    re.IGNORECASE,
)
# (client, service) in Hindi / Bengali word order
CREATE_ORDER_HI = re.compile(r"ग्राहक\s+(.+?)\s+के\s+लिए\s+(.+?)\s+(?:का|की|के)\s+ऑर्डर")
CREATE_ORDER_BN = re.compile(r"গ্রাহক\s+(.+?)\s+এর\s+জন্য\s+(.+?)\s+(?:এর\s+)?অর্ডার")

SERVICE_TYPE_SUFFIX = re.compile(r"\s+(course|class|कोर्स|कक्षा|কোর্স|ক্লাস)$", re.IGNORECASE)
CLASS_SUFFIXES = ("class", "कक्षा", "ক্লাস")

_NAME_END = r"(?=\s*,|\s+(?:with|and|email|phone|mobile|ईमेल|फोन|फ़ोन|और|ইমেইল|ফোন|এবং)(?=\s|:|$)|\s*$)"
CLIENT_NAME_PATTERNS = [
    re.compile(r"(?:named|name|नाम|নাম)\s*:?\s*(.+?)" + _NAME_END, re.IGNORECASE),
    re.compile(r"(?:client|customer|ग्राहक|গ্রাহক)\s+(.+?)" + _NAME_END, re.IGNORECASE),
]

ATTENDANCE_CLASS_PATTERN = re.compile(
    r"\bfor\s+(?:the\s+)?(.+?)(?:\s+class)?\s*[?.!]*$",
    re.IGNORECASE,
)
# "for this week" names a period, not a class
RELATIVE_PERIOD_WORDS = ("this", "last", "next", "today", "week", "month", "year")


def is_valid_email(email: str) -> bool:
    """Standard ``local@domain.tld`` shape."""
    return bool(EMAIL_SHAPE.match(email.strip()))


def normalize_phone(phone: str) -> str:
    """Strip spaces, dashes and parentheses."""
    return re.sub(r"[\s\-()]", "", phone)


def is_valid_phone(phone: str) -> bool:
    """Optional leading '+' followed by 10-15 digits once normalised."""
    return bool(PHONE_SHAPE.match(normalize_phone(phone)))


def extract_email(query: str) -> Optional[str]:
    match = EMAIL_PATTERN.search(query)
    return match.group(1) if match else None


def extract_phone(query: str) -> Optional[str]:
    match = LABELLED_PHONE_PATTERN.search(query) or PHONE_PATTERN.search(query)
    return normalize_phone(match.group(1)) if match else None


def extract_client_name(query: str) -> Optional[str]:
    """Name following "name" / "नाम" / "নাম"."""
    for pattern in NAME_PATTERNS:
        match = pattern.search(query)
        if match:
            return match.group(1).strip()
    return None


def extract_order_id(query: str) -> Optional[str]:
    """Order id written as ``order #X`` or ``order X`` where X contains a digit."""
    match = ORDER_ID_PATTERN.search(query)
    if not match:
        return None
    return match.group(1) or match.group(2)


def _split_service_type(service: str) -> Dict[str, str]:
    service = service.strip().strip("\"'")
    service_type = "course"
    suffix = SERVICE_TYPE_SUFFIX.search(service)
    if suffix:
        if suffix.group(1).lower() in CLASS_SUFFIXES:
            service_type = "class"
        service = service[:suffix.start()].strip()
    return {"serviceName": service, "serviceType": service_type}


def _client_identifier(client: str) -> Dict[str, str]:
    client = client.strip().strip("\"'")
    if "@" in client:
        return {"clientEmail": client}
    return {"clientName": client}


def extract_create_order(query: str) -> Dict[str, str]:
    """
    Pull service and client out of a create-order request.

    Recognised shapes:
        "Create an order for Yoga Beginner for client john@example.com"
        "ग्राहक john@example.com के लिए योग कोर्स का ऑर्डर बनाएं"
        "গ্রাহক john@example.com এর জন্য যোগ কোর্স অর্ডার তৈরি করুন"

    Returns:
        Dict with serviceName, serviceType and clientEmail or clientName;
        empty if the request cannot be parsed
    """
    match = CREATE_ORDER_EN.search(query)
    if match:
        service, client = match.group(1), match.group(2)
    else:
        match = CREATE_ORDER_HI.search(query) or CREATE_ORDER_BN.search(query)
        if not match:
            return {}
        client, service = match.group(1), match.group(2)

    data = _split_service_type(service)
    data.update(_client_identifier(client))
    return data


def extract_create_client(query: str) -> Dict[str, str]:
    """
    Pull name, email and phone out of a create-client request.

    Only fields that were found are present in the result.
    """
    data: Dict[str, str] = {}

    for pattern in CLIENT_NAME_PATTERNS:
        name_match = pattern.search(query)
        if name_match:
            name = name_match.group(1).strip().strip("\"'")
            if name and "@" not in name:
                data["name"] = name
                break

    email = extract_email(query)
    if email:
        data["email"] = email

    phone_match = LABELLED_PHONE_PATTERN.search(query)
    if phone_match:
        data["phone"] = normalize_phone(phone_match.group(1))
    else:
        remainder = EMAIL_PATTERN.sub(" ", query)
        phone_match = PHONE_PATTERN.search(remainder)
        if phone_match and phone_match.group(1).strip():
            data["phone"] = normalize_phone(phone_match.group(1))

    return data


def extract_class_name(query: str) -> Optional[str]:
    """Class name in "attendance percentage for <class>"."""
    match = ATTENDANCE_CLASS_PATTERN.search(query)
    if not match:
        return None
    name = match.group(1).strip()
    if name.lower().split(" ")[0] in RELATIVE_PERIOD_WORDS:
        return None
    return name or None
