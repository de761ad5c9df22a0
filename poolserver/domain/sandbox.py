"""Resolution of file request paths inside the served directory."""

from pathlib import Path

from poolserver.domain.protocol import ResourceNotFound


def resolve_sandbox_path(directory: str, user_path: str) -> Path:
    """Resolve a requested path inside ``directory``.

    Anything that cannot name a regular file below the directory, including
    attempts to climb out of it, is reported as ResourceNotFound.
    """
    if not user_path or "\x00" in user_path:
        raise ResourceNotFound(user_path)

    directory_root = Path(directory).resolve()
    relative_part = user_path.lstrip("/")
    if not relative_part or ".." in Path(relative_part).parts:
        raise ResourceNotFound(user_path)

    target = (directory_root / relative_part).resolve()
    if directory_root not in target.parents:
        raise ResourceNotFound(user_path)
    if not target.is_file():
        raise ResourceNotFound(user_path)
    return target
