import pytest

from momo_auth.domain.services import is_allowed_redirect_uri, normalize_canadian_phone

SCHEMES = ["sherpamomo://", "exp://"]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("416-725-8527", "+14167258527"),
        ("(416) 725 8527", "+14167258527"),
        ("1 416 725 8527", "+14167258527"),
        ("+1 (416) 725-8527", "+14167258527"),
        ("725-8527", None),
        ("2 416 725 8527", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_canadian_phone(raw, expected):
    assert normalize_canadian_phone(raw) == expected


@pytest.mark.parametrize(
    "uri, allowed",
    [
        ("sherpamomo://auth", True),
        ("  SherpaMomo://auth  ", True),
        ("exp://192.168.0.10:8081/--/auth", True),
        ("https://evil.example/cb", False),
        ("sherpamomo:/missing-slash", False),
        ("", False),
        (None, False),
    ],
)
def test_is_allowed_redirect_uri(uri, allowed):
    assert is_allowed_redirect_uri(uri, SCHEMES) is allowed
