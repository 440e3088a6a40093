from .paths import safe_file_path

__all__ = ["safe_file_path"]
