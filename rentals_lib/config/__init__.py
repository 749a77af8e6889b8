from .config import Config, load_config, config_from_dict, write_template, DEFAULT_CONFIG_PATH

__all__ = ["Config", "load_config", "config_from_dict", "write_template", "DEFAULT_CONFIG_PATH"]
