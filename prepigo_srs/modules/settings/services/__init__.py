from .settings_service import SettingsResolver, GLOBAL_SOURCE_NAME

__all__ = ['SettingsResolver', 'GLOBAL_SOURCE_NAME']
