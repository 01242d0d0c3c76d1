import os
from flask import current_app

from src.extensions import db
from src.domain.models import OrganizationSettings
from src.domain.schemas import Branding
from src.application.services.completion_client import CompletionSettings, CompletionClient


class SettingsService:
    """
    Organization settings collaborator: branding for the report renderer and
    credentials for the completion client.
    """

    @staticmethod
    def get_settings():
        return db.session.query(OrganizationSettings).order_by(OrganizationSettings.id).first()

    @staticmethod
    def get_branding() -> Branding:
        settings = SettingsService.get_settings()
        if settings is None:
            return Branding()

        logo_path = None
        if settings.logo_file:
            logo_path = os.path.join(current_app.config['UPLOADS_DIR'], settings.logo_file)

        return Branding(
            organization_name=settings.organization_name or 'Culture App',
            logo_path=logo_path,
        )

    @staticmethod
    def get_completion_settings() -> CompletionSettings:
        """The organization's stored API key wins over the environment one."""
        settings = SettingsService.get_settings()
        api_key = settings.openai_api_key if settings else None
        return CompletionSettings.from_config(current_app.config, api_key_override=api_key)

    @staticmethod
    def build_completion_client() -> CompletionClient:
        """A fresh client per call, so credential changes apply immediately."""
        return CompletionClient(SettingsService.get_completion_settings())
