from .settings import Settings, default_state_dir, env_flag, env_int, load_settings

__all__ = ["Settings", "load_settings", "default_state_dir", "env_flag", "env_int"]
