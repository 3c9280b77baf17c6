"""
Configuration file for pytest.

This file configures pytest to properly load environment variables
and provides shared fixtures for tests.
"""
import os
import pytest
import dotenv
import requests

# Load environment variables from .env file
dotenv.load_dotenv()


@pytest.fixture(scope="session")
def ckan_endpoint():
    """CKAN endpoint for live tests, or None if no CKAN site is reachable."""
    endpoint = os.getenv("CKAN_TEST_ENDPOINT")
    if not endpoint:
        return None
    try:
        response = requests.get(f"{endpoint.rstrip('/')}/api/3/action/status_show", timeout=5.0)
        response.raise_for_status()
        return endpoint
    except requests.RequestException as e:
        print(f"CKAN not available: {str(e)}")
        return None


@pytest.fixture(scope="session")
def ckan_api_key():
    """Check if a CKAN API key is available."""
    api_key = os.getenv("CKAN_TEST_API_KEY")
    if api_key and api_key.strip() and api_key != "None":
        return api_key
    return None
