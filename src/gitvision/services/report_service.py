# Licensed under the Apache License, Version 2.0 (the "License");
# ...
from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Any, List, Mapping, Optional

FORMATS = ("json", "ndjson", "csv")


class ReportService:
    """
    Writes highlight data for external renderers (JSON/NDJSON/CSV).

    Notes:
      - JSON (default): one object mapping file path -> list of line indices.
      - NDJSON: one {"path", "count", "lines"} object per file.
      - CSV: path,count,lines with the indices space-separated; stable column order.
      - Paths are written relative to `root` when given and the file lies under it.
    """

    def __init__(
        self, highlights: Mapping[str, List[int]], root: Optional[Path] = None
    ) -> None:
        self._highlights = highlights
        self._root = Path(root) if root is not None else None

    def _rows(self) -> List[dict[str, Any]]:
        rows = []
        for path in sorted(self._highlights):
            lines = list(self._highlights[path])
            rows.append({"path": self._display(path), "count": len(lines), "lines": lines})
        return rows

    def _display(self, path: str) -> str:
        if self._root is None:
            return path
        try:
            return Path(path).relative_to(self._root).as_posix()
        except ValueError:
            return path

    def render(self, fmt: str = "json") -> str:
        """
        Render the report as text.

        Raises:
            ValueError: if an unsupported format is requested.
        """
        fmt = (fmt or "json").lower()
        rows = self._rows()

        if fmt == "json":
            return json.dumps(
                {r["path"]: r["lines"] for r in rows}, ensure_ascii=False, indent=2
            )

        if fmt == "ndjson":
            text = "\n".join(json.dumps(r, ensure_ascii=False) for r in rows)
            # Trailing newline only if non-empty
            return text + ("\n" if text else "")

        if fmt == "csv":
            buf = io.StringIO()
            writer = csv.DictWriter(buf, fieldnames=["path", "count", "lines"], lineterminator="\n")
            writer.writeheader()
            for r in rows:
                writer.writerow(
                    {
                        "path": r["path"],
                        "count": r["count"],
                        "lines": " ".join(str(n) for n in r["lines"]),
                    }
                )
            return buf.getvalue()

        raise ValueError(f"Unsupported format: {fmt}")

    def write_highlights(self, out: Path, fmt: str = "json") -> Path:
        """
        Write the report to `out` in the specified format.

        Returns:
            The path written.
        """
        text = self.render(fmt)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding="utf-8")
        return out
