"""Best-effort device / browser / OS sniffing from a User-Agent header."""
import re
from typing import Optional

TABLET_RE = re.compile(r'ipad|tablet|playbook|silk|kindle fire|android(?!.*mobile)', re.I)

MOBILE_RE = re.compile(
    r'(android|bb\d+|meego).+mobile|avantgo|bada/|blackberry|blazer|compal|elaine|fennec|'
    r'hiptop|iemobile|ip(hone|od)|iris|kindle|lge |maemo|midp|mmp|mobile.+firefox|netfront|'
    r'opera m(ob|in)i|palm( os)?|phone|p(ixi|re)/|plucker|pocket|psp|series(4|6)0|symbian|'
    r'treo|up\.(browser|link)|vodafone|wap|windows ce|xda|xiino',
    re.I,
)

# First match wins
BROWSERS = [
    ('Firefox', ('Firefox',)),
    ('Samsung Browser', ('SamsungBrowser',)),
    ('Opera', ('Opera', 'OPR')),
    ('Internet Explorer', ('Trident',)),
    ('Edge', ('Edge', 'Edg/')),
    ('Chrome', ('Chrome',)),
    ('Safari', ('Safari',)),
]

OPERATING_SYSTEMS = [
    ('Windows 10', re.compile(r'Windows NT 10\.0', re.I)),
    ('Windows 8.1', re.compile(r'Windows NT 6\.3', re.I)),
    ('Windows 8', re.compile(r'Windows NT 6\.2', re.I)),
    ('Windows 7', re.compile(r'Windows NT 6\.1', re.I)),
    ('Windows Vista', re.compile(r'Windows NT 6\.0', re.I)),
    ('Windows XP', re.compile(r'Windows NT 5\.1', re.I)),
    ('Windows 2000', re.compile(r'Windows NT 5\.0', re.I)),
    ('iOS', re.compile(r'iPhone|iPad|iPod', re.I)),
    ('Android', re.compile(r'Android', re.I)),
    ('MacOS', re.compile(r'Mac', re.I)),
    ('Linux', re.compile(r'Linux', re.I)),
]

UNKNOWN = 'Unknown'


def detect_device_type(user_agent: Optional[str]) -> str:
    if not user_agent:
        return 'desktop'
    if TABLET_RE.search(user_agent):
        return 'tablet'
    if MOBILE_RE.search(user_agent):
        return 'mobile'
    return 'desktop'


def detect_browser(user_agent: Optional[str]) -> str:
    if not user_agent:
        return UNKNOWN
    for name, tokens in BROWSERS:
        if any(token in user_agent for token in tokens):
            return name
    return UNKNOWN


def detect_os(user_agent: Optional[str]) -> str:
    """Mobile systems are matched before MacOS/Linux, whose tokens their UAs also carry."""
    if not user_agent:
        return UNKNOWN
    for name, pattern in OPERATING_SYSTEMS:
        if pattern.search(user_agent):
            return name
    return UNKNOWN
