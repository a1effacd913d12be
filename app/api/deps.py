from fastapi import Request

from app.core.bitrix_client import BitrixClient
from app.core.sanity_client import SanityClient
from app.core.settings import Settings
from app.core.sheets_client import SheetsClient


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_sheets_client(request: Request) -> SheetsClient:
    return request.app.state.sheets_client


def get_bitrix_client(request: Request) -> BitrixClient:
    return request.app.state.bitrix_client


def get_sanity_client(request: Request) -> SanityClient:
    return request.app.state.sanity_client
