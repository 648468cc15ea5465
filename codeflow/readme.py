"""README generation from a project's ``package.json`` and file layout."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence

from .models import ProjectFile
from .project_files import build_file_tree


class ReadmeError(Exception):
    """The project has no usable ``package.json``."""


def generate_feature_bullets(pkg: Dict[str, Any], files: Sequence[ProjectFile]) -> str:
    features: List[str] = []
    paths = [f.path for f in files]
    deps = {**(pkg.get("dependencies") or {}), **(pkg.get("devDependencies") or {})}

    if "react" in deps:
        features.append("Built with a modern, component-based **React** UI.")
    if "react-router-dom" in deps:
        features.append("Includes **client-side routing** for a multi-page feel.")
    if "tailwindcss" in deps:
        features.append("Styled utility-first with **Tailwind CSS**.")
    elif any(p.endswith((".scss", ".sass")) for p in paths):
        features.append("Uses **Sass** for advanced, nested styling.")
    if "axios" in deps:
        features.append("Connects to external data sources using **API fetching**.")
    if "firebase" in deps:
        features.append("Integrated with **Firebase** for backend services (auth, database).")
    if "@xyflow/react" in deps or "d3" in deps:
        features.append("Renders complex **data visualizations**.")

    if any("src/api" in p or "src/utils/api" in p for p in paths):
        features.append("Features a dedicated **API layer** for data management.")
    if any("src/components" in p for p in paths):
        features.append("Organized with a clean, **component-based** file structure.")
    if any(p.endswith((".ts", ".tsx")) for p in paths):
        features.append("Ensures code quality and type safety with **TypeScript**.")

    if not features:
        return "*No key features detected automatically.*"
    return "\n".join(f"- {feature}" for feature in features)


def _find_package_json(files: Sequence[ProjectFile]) -> ProjectFile:
    candidates = [f for f in files if f.path.endswith("package.json")]
    if not candidates:
        raise ReadmeError("Could not find package.json in the project.")
    # Prefer the shallowest one (the project root).
    return min(candidates, key=lambda f: f.path.count("/"))


def generate_readme(files: Sequence[ProjectFile]) -> str:
    pkg_file = _find_package_json(files)
    try:
        pkg = json.loads(pkg_file.content)
    except json.JSONDecodeError as exc:
        raise ReadmeError(f"Failed to parse package.json: {exc}") from exc
    if not isinstance(pkg, dict):
        raise ReadmeError("package.json does not contain an object")

    name = pkg.get("name") or "My Project"
    description = pkg.get("description") or (
        "A description of the project. (Update this in your package.json!)"
    )

    scripts = pkg.get("scripts") or {}
    script_lines = "\n".join(
        f"- `npm run {script}`: Runs `{command}`" for script, command in scripts.items()
    ) or "*No scripts found.*"

    deps = "\n".join(f"- `{d}`" for d in (pkg.get("dependencies") or {})) or "*None*"
    dependencies = f"### Dependencies\n{deps}\n\n"
    dev_deps = "\n".join(f"- `{d}`" for d in (pkg.get("devDependencies") or {}))
    if dev_deps:
        dependencies += f"### Dev Dependencies\n{dev_deps}"

    return f"""# {name}
{description}
## ✨ Key Features
{generate_feature_bullets(pkg, files)}
## 🚀 Installation
```bash
npm install
```
## Usage
To run this project, use the following scripts:

{script_lines}
## 📂 Project Structure
```
{build_file_tree(f.path for f in files)}```
## External Dependencies
{dependencies}
## 🤝 Contributing
Contributions are welcome!
## 📄 License
*This project is not licensed.*
---
*This README was auto-generated by CodeFlow.*
"""
