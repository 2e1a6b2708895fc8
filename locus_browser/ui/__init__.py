from .dash_app import create_dash_app, create_dash_app_from_config

__all__ = ["create_dash_app", "create_dash_app_from_config"]
