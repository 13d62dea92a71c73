"""Scaffold files generated for an exported project.

Everything here is a pure function of the project name: the same name always
yields the same package name, repository name, `package.json` and README.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

FALLBACK_REPO_NAME = "uigen-project"

_UNSAFE_NAME_CHARS = re.compile(r"[^a-z0-9-]")

_SCRIPTS: dict[str, str] = {
    "dev": "next dev",
    "build": "next build",
    "start": "next start",
    "lint": "next lint",
}

_DEPENDENCIES: dict[str, str] = {
    "next": "^15.0.0",
    "react": "^19.0.0",
    "react-dom": "^19.0.0",
    "typescript": "^5.0.0",
    "@types/node": "^20.0.0",
    "@types/react": "^19.0.0",
    "@types/react-dom": "^19.0.0",
    "tailwindcss": "^4.0.0",
}

_README_TEMPLATE = """# {name}

Generated components from UIGen

## Getting Started

1. Install dependencies:
```bash
npm install
```

2. Run the development server:
```bash
npm run dev
```

## Generated Components

This project contains components generated using UIGen.
"""


def derive_repo_name(project_name: str) -> str:
    """Derive the package/repository name from a project name.

    Lower-cases the name and replaces every character outside `[a-z0-9-]` with
    `-`. A name with nothing left to derive from maps to
    :data:`FALLBACK_REPO_NAME`.

    >>> derive_repo_name("My App")
    'my-app'
    """

    derived = _UNSAFE_NAME_CHARS.sub("-", project_name.lower())
    return derived or FALLBACK_REPO_NAME


@dataclass(frozen=True, slots=True)
class GeneratedManifest:
    repo_name: str
    package_json: dict[str, Any]
    readme: str

    def package_json_text(self) -> str:
        return json.dumps(self.package_json, indent=2, ensure_ascii=False)


def build_manifest(project_name: str) -> GeneratedManifest:
    repo_name = derive_repo_name(project_name)
    package_json: dict[str, Any] = {
        "name": repo_name,
        "version": "1.0.0",
        "description": f"Generated components from UIGen project: {project_name}",
        "main": "index.js",
        "scripts": dict(_SCRIPTS),
        "dependencies": dict(_DEPENDENCIES),
    }
    return GeneratedManifest(
        repo_name=repo_name,
        package_json=package_json,
        readme=_README_TEMPLATE.format(name=project_name),
    )
