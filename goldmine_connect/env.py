"""
Utilities for loading environment variables from a .env file.
"""
from functools import lru_cache
from typing import Optional

from dotenv import find_dotenv, load_dotenv


@lru_cache(maxsize=1)
def load_env() -> Optional[str]:
    """
    Load GOLDMINE_* defaults from the nearest .env (searched upward from the
    working directory) once. Returns the path that was loaded, or None.
    """
    dotenv_path = find_dotenv(usecwd=True)
    if not dotenv_path:
        return None
    # variables already set in the process environment win over the file
    load_dotenv(dotenv_path=dotenv_path, override=False)
    return dotenv_path
