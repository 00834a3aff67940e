# -*- coding: utf-8 -*-
# ------------------------------------------------------------------------------
#
#   Copyright 2026 Valory AG
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.
#
# ------------------------------------------------------------------------------

"""Local resource representation."""

import inspect
import json
import os
import shutil
import typing as t
from pathlib import Path

from interop.serialization import deserialize, serialize


N_BACKUPS = 3


class LocalResource:
    """JSON-backed resource; annotated attributes are its persisted fields."""

    _file: t.Optional[str] = None

    def __init__(self, path: t.Optional[Path] = None) -> None:
        """Initialize local resource."""
        self.path = path

    @classmethod
    def _fields(cls) -> t.Dict[str, t.Any]:
        fields: t.Dict[str, t.Any] = {}
        for klass in reversed(cls.__mro__):
            fields.update(getattr(klass, "__annotations__", {}))
        return {
            name: otype
            for name, otype in fields.items()
            if not name.startswith("_") and name != "path"
        }

    @property
    def json(self) -> t.Dict:
        """To dictionary object."""
        return {
            pname: serialize(getattr(self, pname)) for pname in self._fields()
        }

    @classmethod
    def from_json(cls, obj: t.Dict) -> "LocalResource":
        """Load LocalResource from json."""
        kwargs = {
            pname: deserialize(obj=obj.get(pname), otype=ptype)
            for pname, ptype in cls._fields().items()
            if pname in obj
        }
        if "path" in obj and "path" in inspect.signature(cls).parameters:
            kwargs["path"] = obj["path"]
        return cls(**kwargs)

    @classmethod
    def file_for(cls, path: Path) -> Path:
        """Resolve the JSON file a resource rooted at `path` is kept in."""
        if cls._file is None or path.name == cls._file:
            return path
        return path / cls._file

    @classmethod
    def load(cls, path: Path) -> "LocalResource":
        """Load local resource."""
        data = json.loads(cls.file_for(path).read_text(encoding="utf-8"))
        return cls.from_json(obj={**data, "path": path})

    def store(self) -> None:
        """Store local resource, keeping rotated backups of previous versions."""
        if self.path is None:
            raise RuntimeError(f"Cannot save {self}; Path value not provided.")

        file = self.file_for(self.path)
        file.parent.mkdir(parents=True, exist_ok=True)

        if file.exists():
            for i in reversed(range(N_BACKUPS - 1)):
                newer = file.with_name(f"{file.name}.{i}.bak")
                if newer.exists():
                    os.replace(newer, file.with_name(f"{file.name}.{i + 1}.bak"))
            shutil.copy2(file, file.with_name(f"{file.name}.0.bak"))

        tmp = file.with_name(f".{file.name}.tmp")
        tmp.write_text(json.dumps(self.json, indent=2), encoding="utf-8")
        os.replace(tmp, file)
