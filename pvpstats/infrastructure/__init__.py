from .config_loader import load_settings_from_yaml

__all__ = ["load_settings_from_yaml"]
