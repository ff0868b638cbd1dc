"""
Tests for environment-driven store settings.
"""

from pathlib import Path

import pytest

from config.settings import DEFAULT_DATA_DIR, load_store_settings
from homecare.ingest.errors import ConfigurationError

pytestmark = pytest.mark.unit

BASE_ENV = {
    "FIREBASE_PROJECT_ID": "homecare-demo",
    "FIREBASE_CREDENTIALS_JSON_PATH": "/secrets/service-account.json",
}


class TestLoadStoreSettings:
    """Test store settings from environment variables."""

    def test_minimal_environment(self):
        """Test settings from the minimal environment."""
        settings = load_store_settings(BASE_ENV)

        assert settings.project_id == "homecare-demo"
        assert settings.credentials_path == "/secrets/service-account.json"
        assert settings.batch_size == 500
        assert settings.data_dir == DEFAULT_DATA_DIR
        assert settings.has_credentials

    def test_frontend_style_names(self):
        """Test the VITE_ variable names."""
        settings = load_store_settings(
            {
                "VITE_FIREBASE_PROJECT_ID": "homecare-web",
                "VITE_FIREBASE_API_KEY": "key-123",
                "GOOGLE_APPLICATION_CREDENTIALS": "/adc.json",
            }
        )

        assert settings.project_id == "homecare-web"
        assert settings.api_key == "key-123"
        assert settings.credentials_path == "/adc.json"

    def test_explicit_name_takes_priority(self):
        """Test FIREBASE_ names win over VITE_ names."""
        settings = load_store_settings(
            {**BASE_ENV, "VITE_FIREBASE_PROJECT_ID": "other"}
        )

        assert settings.project_id == "homecare-demo"

    def test_base64_credentials(self):
        """Test inline base64 credentials."""
        settings = load_store_settings(
            {"FIREBASE_PROJECT_ID": "p", "FIREBASE_CREDENTIALS_JSON_B64": " e30= "}
        )

        assert settings.credentials_b64 == "e30="
        assert settings.credentials_path == ""

    def test_missing_project_id(self):
        """Test a missing project id."""
        with pytest.raises(ConfigurationError, match="FIREBASE_PROJECT_ID"):
            load_store_settings({"FIREBASE_CREDENTIALS_JSON_PATH": "/key.json"})

    def test_missing_credentials(self):
        """Test missing credentials."""
        with pytest.raises(ConfigurationError, match="FIREBASE_CREDENTIALS_JSON_B64"):
            load_store_settings({"FIREBASE_PROJECT_ID": "p"})

    def test_blank_values_count_as_missing(self):
        """Test whitespace-only values."""
        with pytest.raises(ConfigurationError):
            load_store_settings({"FIREBASE_PROJECT_ID": "  ", "FIREBASE_CREDENTIALS_JSON_PATH": "/k"})

    @pytest.mark.parametrize("value", ["0", "501", "many"])
    def test_invalid_batch_size(self, value):
        """Test out-of-range and non-numeric batch sizes."""
        with pytest.raises(ConfigurationError, match="IMPORT_BATCH_SIZE"):
            load_store_settings({**BASE_ENV, "IMPORT_BATCH_SIZE": value})

    def test_custom_batch_size_and_data_dir(self, tmp_path):
        """Test batch size and data directory overrides."""
        settings = load_store_settings(
            {**BASE_ENV, "IMPORT_BATCH_SIZE": "100", "IMPORT_DATA_DIR": str(tmp_path)}
        )

        assert settings.batch_size == 100
        assert settings.data_dir == Path(tmp_path)
