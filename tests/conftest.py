# tests/conftest.py
import pytest

from ccreport.config import get_settings
from ccreport.models import UserConfig

EMAIL_BODY = """
Σύνολο Κινήσεων Κάρτας **1234
ΧΡΕΩΣΗ 50,00 Ημ/νία: 01/01/2024 Αιτιολογία: Test Purchase Έξοδα Συναλλάγματος: 0,00 Έξοδα Ανάληψης Μετρητών: 0,00
ΠΙΣΤΩΣΗ 1.600,00 Ημ/νία: 03/05/2025 Αιτιολογία: ΠΛ. ΚΑΡΤΑΣ WEB/EUROP Έξοδα Συναλλάγματος: 0,00 Έξοδα Ανάληψης Μετρητών: 0,00
"""


@pytest.fixture
def raw_user_config() -> dict:
    """User config exactly as stored in the property store."""
    return {
        "spreadsheetId": "123",
        "locale": "el-GR",
        "cards": [
            {"lastFourDigits": "1234", "name": "Test Card", "sheetName": "Test Sheet"},
            {"lastFourDigits": "5678", "name": "Other Card", "sheetName": "Other Sheet"},
        ],
    }


@pytest.fixture
def user_config(raw_user_config) -> UserConfig:
    return UserConfig.model_validate(raw_user_config)


@pytest.fixture
def email_body() -> str:
    return EMAIL_BODY


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
