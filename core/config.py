import os
import yaml


CONFIG_FILE_NAME = "config.yaml"


def config_candidates():
    """
    Config file locations in lookup order: MCP_CONFIG_PATH, ./config.yaml, then the one next to the sources.
    """
    candidates = []
    if os.getenv("MCP_CONFIG_PATH"):
        candidates.append(os.path.abspath(os.getenv("MCP_CONFIG_PATH")))
    candidates.append(os.path.abspath(os.path.join(os.getcwd(), CONFIG_FILE_NAME)))
    candidates.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", CONFIG_FILE_NAME)))
    return candidates


class ConfigLoader:
    _instance = None
    _config = None
    _config_path = None

    def __new__(cls):
        """
        Create a singleton instance of ConfigLoader.
        Loads configuration from YAML file on first instantiation.
        """
        if cls._instance is None:
            cls._instance = super(ConfigLoader, cls).__new__(cls)
            cls._load_config()
        return cls._instance

    @classmethod
    def _load_config(cls):
        """
        Load the configuration from the YAML file into the class variable _config.

        The first existing file from `config_candidates()` wins. An explicit MCP_CONFIG_PATH must exist.
        """
        candidates = config_candidates()
        if os.getenv("MCP_CONFIG_PATH"):
            candidates = candidates[:1]
        config_path = next((path for path in candidates if os.path.isfile(path)), None)
        if config_path is None:
            raise FileNotFoundError(f"No config file found; looked at: {candidates}")
        cls._config_path = config_path
        with open(config_path, "r", encoding="utf-8") as f:
            cls._config = yaml.safe_load(f) or {}
        if not isinstance(cls._config, dict):
            raise ValueError(f"Config root in {config_path} must be a mapping")

    @classmethod
    def reset(cls):
        """
        Forget the loaded configuration so the next access re-reads the file.
        """
        cls._instance = None
        cls._config = None
        cls._config_path = None

    def get_config(self):
        """
        Return the loaded configuration dictionary.
        """
        return self._config

    def get_config_dir(self):
        """
        Return the directory of the loaded config file; relative paths in the config resolve against it.
        """
        return os.path.dirname(self._config_path)


def get_config():
    """
    Helper function to get the singleton configuration instance's config dictionary.
    """
    return ConfigLoader().get_config()


def get_section(name):
    """
    Return a top-level config section as a dict, or an empty dict if it is missing.
    """
    section = (get_config() or {}).get(name)
    return section if isinstance(section, dict) else {}


def get_server_config(key):
    """
    Return the `servers.<key>` entry. Raises KeyError for servers not declared in config.yaml.
    """
    servers = get_section("servers")
    if key not in servers:
        raise KeyError(f"Unknown server '{key}'; declared servers: {sorted(servers)}")
    return servers[key] or {}


def get_config_dir():
    """
    Directory holding the config file in use.
    """
    return ConfigLoader().get_config_dir()
