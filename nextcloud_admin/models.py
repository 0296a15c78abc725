"""
OCS response envelope and request records.

An OCS response looks like::

    <ocs>
      <meta>
        <status>ok</status>
        <statuscode>100</statuscode>
        <message>OK</message>
        <totalitems></totalitems>
        <itemsperpage></itemsperpage>
      </meta>
      <data>
        <users>
          <element>alice</element>
          <element>bob</element>
        </users>
      </data>
    </ocs>

The ``data`` section has no discriminant: which fields are populated depends
on the endpoint that was called. Every branch defaults to its zero value, so
callers read the field that matches the operation they invoked (``users`` for
user listings, ``groups`` for group listings, the profile fields and ``quota``
for a single user, ``elements`` for bare element lists).
"""

from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Tuple, TypeVar
from xml.etree import ElementTree as ET

T = TypeVar("T")

_TRUE_VALUES = {"1", "t", "true"}
_FALSE_VALUES = {"0", "f", "false"}


@dataclass
class Meta:
    """Status section of an OCS envelope."""
    status: str = ""
    statuscode: int = 0
    message: str = ""
    totalitems: str = ""
    itemsperpage: str = ""


@dataclass
class Quota:
    """Storage quota figures of a single user."""
    free: int = 0
    used: int = 0
    total: int = 0
    relative: float = 0.0
    quota: int = 0


@dataclass
class Data:
    """Payload section of an OCS envelope (implicit union, see module docs)."""
    users: List[str] = field(default_factory=list)
    groups: List[str] = field(default_factory=list)
    elements: List[str] = field(default_factory=list)
    id: str = ""
    storage_location: str = ""
    last_login: int = 0
    backend: str = ""
    enabled: bool = False
    email: str = ""
    displayname: str = ""
    phone: str = ""
    address: str = ""
    website: str = ""
    twitter: str = ""
    quota: Quota = field(default_factory=Quota)


@dataclass
class OCS:
    """Parsed OCS response envelope."""
    meta: Meta = field(default_factory=Meta)
    data: Data = field(default_factory=Data)

    @property
    def ok(self) -> bool:
        """Whether the server reported the call as successful."""
        return self.meta.status == "ok"


@dataclass
class UserRequest:
    """Fields for creating a user. Only ``user_id`` is required."""
    user_id: str
    password: str = ""
    display_name: str = ""
    email: str = ""
    quota: str = ""
    language: str = ""
    groups: List[str] = field(default_factory=list)
    subadmin: List[str] = field(default_factory=list)

    def to_form(self) -> List[Tuple[str, str]]:
        """
        Build the ordered form fields for the create-user endpoint.

        Empty scalar fields are left out. Groups and subadmin grants become
        repeated ``groups[]`` / ``subadmin[]`` fields in the given order.
        """
        scalars = [
            ("userid", self.user_id),
            ("password", self.password),
            ("displayName", self.display_name),
            ("email", self.email),
            ("quota", self.quota),
            ("language", self.language),
        ]
        form = [(key, value) for key, value in scalars if value]
        form.extend(("groups[]", group) for group in self.groups)
        form.extend(("subadmin[]", group) for group in self.subadmin)
        return form


# ============================================================================
# XML decoding
# ============================================================================

def _last(parent: Optional[ET.Element], tag: str) -> Optional[ET.Element]:
    """Return the last direct child named ``tag`` (later elements win)."""
    if parent is None:
        return None
    found = parent.findall(tag)
    return found[-1] if found else None


def _text(parent: Optional[ET.Element], tag: str) -> str:
    element = _last(parent, tag)
    if element is None:
        return ""
    return element.text or ""


def _scalar(parent: Optional[ET.Element], tag: str, convert: Callable[[str], T], zero: T) -> T:
    raw = _text(parent, tag).strip()
    if not raw:
        return zero
    try:
        return convert(raw)
    except ValueError as e:
        raise ValueError(f"invalid value {raw!r} for <{tag}>") from e


def _parse_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(raw)


def _elements(parent: Optional[ET.Element]) -> Iterator[str]:
    if parent is None:
        return
    for element in parent.findall("element"):
        yield element.text or ""


def _parse_meta(node: Optional[ET.Element]) -> Meta:
    return Meta(
        status=_text(node, "status"),
        statuscode=_scalar(node, "statuscode", int, 0),
        message=_text(node, "message"),
        totalitems=_text(node, "totalitems"),
        itemsperpage=_text(node, "itemsperpage"),
    )


def _parse_quota(node: Optional[ET.Element]) -> Quota:
    return Quota(
        free=_scalar(node, "free", int, 0),
        used=_scalar(node, "used", int, 0),
        total=_scalar(node, "total", int, 0),
        relative=_scalar(node, "relative", float, 0.0),
        quota=_scalar(node, "quota", int, 0),
    )


def _parse_data(node: Optional[ET.Element]) -> Data:
    return Data(
        users=list(_elements(_last(node, "users"))),
        groups=list(_elements(_last(node, "groups"))),
        elements=list(_elements(node)),
        id=_text(node, "id"),
        storage_location=_text(node, "storageLocation"),
        last_login=_scalar(node, "lastLogin", int, 0),
        backend=_text(node, "backend"),
        enabled=_scalar(node, "enabled", _parse_bool, False),
        email=_text(node, "email"),
        displayname=_text(node, "displayname"),
        phone=_text(node, "phone"),
        address=_text(node, "address"),
        website=_text(node, "website"),
        twitter=_text(node, "twitter"),
        quota=_parse_quota(_last(node, "quota")),
    )


def parse_ocs(body: bytes) -> OCS:
    """
    Parse an OCS XML document into an envelope.

    Unknown elements are ignored and missing ones keep their zero value.

    Args:
        body: Raw response body

    Returns:
        OCS envelope

    Raises:
        ValueError: If the body is not XML, the root is not ``<ocs>``, or a
            numeric/boolean field holds unparsable text
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise ValueError(f"malformed XML: {e}") from e

    if root.tag != "ocs":
        raise ValueError(f"expected <ocs> root element, got <{root.tag}>")

    return OCS(
        meta=_parse_meta(_last(root, "meta")),
        data=_parse_data(_last(root, "data")),
    )
