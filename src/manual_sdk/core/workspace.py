"""Project workspace and asset management."""

import json
import shutil
import uuid
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field

from .images import probe_bitmap_size


class AssetMetadata(BaseModel):
    """Metadata for a registered project asset."""
    asset_id: str
    filename: str
    type: str  # "image", "export"
    source: str = ""  # e.g. "upload", "clipboard"
    dimensions: Optional[tuple[int, int]] = None


class Workspace(BaseModel):
    """Manages a manual project directory and asset manifest."""
    project_name: str
    root_path: Path
    assets: dict[str, AssetMetadata] = Field(default_factory=dict)

    model_config = {"arbitrary_types_allowed": True}

    @property
    def assets_dir(self) -> Path:
        return self.root_path / "assets"

    @property
    def images_dir(self) -> Path:
        return self.assets_dir / "images"

    @property
    def exports_dir(self) -> Path:
        return self.root_path / "exports"

    @property
    def manifest_path(self) -> Path:
        return self.root_path / "project.json"

    @property
    def document_path(self) -> Path:
        return self.root_path / "document.json"

    def initialize(self) -> "Workspace":
        """Create the project directory structure."""
        for d in [self.images_dir, self.exports_dir]:
            d.mkdir(parents=True, exist_ok=True)

        project_md = self.root_path / "project.md"
        if not project_md.exists():
            project_md.write_text(
                f"# Manual: {self.project_name}\n\n"
                "## Audience\n\n## Screens Covered\n\n## Notes\n"
            )

        self.save_manifest()
        return self

    def save_manifest(self):
        """Save the project manifest to disk."""
        data = {
            "project_name": self.project_name,
            "assets": {k: v.model_dump() for k, v in self.assets.items()},
        }
        self.manifest_path.write_text(json.dumps(data, indent=2, default=str))

    @classmethod
    def load(cls, project_path: Path) -> "Workspace":
        """Load a workspace from an existing project directory."""
        manifest_path = project_path / "project.json"
        if not manifest_path.exists():
            raise FileNotFoundError(f"No project.json found in {project_path}")

        data = json.loads(manifest_path.read_bytes())
        assets = {
            k: AssetMetadata(**v) for k, v in data.get("assets", {}).items()
        }
        return cls(
            project_name=data["project_name"],
            root_path=project_path,
            assets=assets,
        )

    def register_asset(self, asset: AssetMetadata) -> AssetMetadata:
        """Register an asset in the workspace manifest."""
        self.assets[asset.asset_id] = asset
        self.save_manifest()
        return asset

    def import_image(self, source_path: Path, source: str = "upload") -> AssetMetadata:
        """Copy an image into the project and register it with its pixel size."""
        source_path = Path(source_path)
        if not source_path.exists():
            raise FileNotFoundError(f"Image not found: {source_path}")

        asset_id = f"img_{uuid.uuid4().hex[:8]}"
        filename = f"{asset_id}{source_path.suffix.lower() or '.png'}"
        self.images_dir.mkdir(parents=True, exist_ok=True)
        dest = self.images_dir / filename
        shutil.copy2(source_path, dest)

        return self.register_asset(AssetMetadata(
            asset_id=asset_id,
            filename=filename,
            type="image",
            source=source,
            dimensions=probe_bitmap_size(str(dest)),
        ))

    def get_asset_path(self, asset_id: str) -> Optional[Path]:
        """Get the full path to an asset file."""
        asset = self.assets.get(asset_id)
        if not asset:
            return None
        type_dirs = {
            "image": self.images_dir,
            "export": self.exports_dir,
        }
        base_dir = type_dirs.get(asset.type, self.assets_dir)
        return base_dir / asset.filename

    def asset_ref(self, asset_id: str) -> Optional[str]:
        """Workspace-relative reference suitable for a slide's ``image_ref``."""
        path = self.get_asset_path(asset_id)
        if path is None:
            return None
        return path.relative_to(self.root_path).as_posix()
