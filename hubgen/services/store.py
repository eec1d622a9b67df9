"""Artifact store — plain files under a root directory."""

from pathlib import Path


class FileStore:
    def __init__(self, root: str | Path = "."):
        self.root = Path(root)

    def resolve(self, path: str | Path) -> Path:
        return self.root / path

    def write(self, path: str | Path, content: str) -> Path:
        target = self.resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return target

    def read(self, path: str | Path) -> str | None:
        target = self.resolve(path)
        if not target.is_file():
            return None
        return target.read_text(encoding="utf-8")

    def exists(self, path: str | Path) -> bool:
        return self.resolve(path).exists()
