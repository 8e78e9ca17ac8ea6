"""Manual Editor MCP Server - MCP tools for building annotated-screenshot manuals."""

from mcp.server.fastmcp import FastMCP, Context
import json
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Any, Optional
import os
from pathlib import Path

# SDK imports
from manual_sdk.core.errors import DocumentLoadError, ExportError
from manual_sdk.core.images import to_data_url
from manual_sdk.core.slides import IMAGE, NOTE, ImageSlide
from manual_sdk.core.state import SessionState
from manual_sdk.core.workspace import Workspace
from manual_sdk.export import PptxExporter, plain_text

# Default configuration
DEFAULT_PROJECTS_DIR = "./projects"
DEFAULT_LOG_LEVEL = "INFO"

# Configure logging
logging.basicConfig(level=os.getenv("MANUAL_LOG_LEVEL", DEFAULT_LOG_LEVEL),
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("ManualMCP")

# Global state
_session_state = SessionState()


def _projects_dir() -> Path:
    return Path(os.getenv("MANUAL_PROJECTS_DIR", DEFAULT_PROJECTS_DIR))


def _base_dir() -> Optional[Path]:
    return _session_state.workspace.root_path if _session_state.workspace else None


# ── Server Setup ────────────────────────────────────────────────────────

@asynccontextmanager
async def server_lifespan(server: FastMCP) -> AsyncIterator[Dict[str, Any]]:
    try:
        logger.info("ManualMCP server starting up")
        yield {}
    finally:
        _session_state.auto_save()
        logger.info("ManualMCP server shut down")


mcp = FastMCP("ManualMCP", lifespan=server_lifespan)


# ═══════════════════════════════════════════════════════════════════════
# PROJECT MANAGEMENT TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def create_project(ctx: Context, project_name: str, base_path: str = "") -> str:
    """Create a new manual project with standard directory structure.

    Parameters:
    - project_name: Name for the project (used as directory name)
    - base_path: Optional base directory (defaults to ./projects/)
    """
    global _session_state
    base = Path(base_path) if base_path else _projects_dir()
    project_path = base / project_name

    if project_path.exists():
        return f"Error: Project directory already exists at {project_path}"

    workspace = Workspace(project_name=project_name, root_path=project_path)
    workspace.initialize()

    _session_state = SessionState(workspace=workspace)
    _session_state.auto_save()

    return json.dumps({
        "status": "created",
        "project_name": project_name,
        "path": str(project_path),
        "directories": ["assets/images/", "exports/"],
    }, indent=2)


@mcp.tool()
def load_project(ctx: Context, project_path: str) -> str:
    """Load an existing manual project. Clears undo/redo history.

    Parameters:
    - project_path: Path to the project directory
    """
    global _session_state
    try:
        workspace = Workspace.load(Path(project_path))
        state = SessionState(workspace=workspace)
        state.load_document_from_workspace()
    except (FileNotFoundError, json.JSONDecodeError, UnicodeDecodeError, KeyError, DocumentLoadError) as e:
        logger.error(f"Load failed for {project_path}: {e}")
        return f"Error loading project: {str(e)}"

    _session_state = state
    return json.dumps({
        "status": "loaded",
        "project_name": workspace.project_name,
        "path": str(workspace.root_path),
        "asset_count": len(workspace.assets),
        "slide_count": len(_session_state.slides),
    }, indent=2)


@mcp.tool()
def save_project(ctx: Context) -> str:
    """Save the current project state (document and manifest)."""
    if not _session_state.workspace:
        return "Error: No project is currently open. Use create_project or load_project first."

    _session_state.auto_save()
    _session_state.workspace.save_manifest()
    return f"Project '{_session_state.workspace.project_name}' saved successfully."


@mcp.tool()
def get_project_status(ctx: Context) -> str:
    """Get the current project status including slide count, history depth, etc."""
    status = {
        "project_loaded": _session_state.workspace is not None,
        "slide_count": len(_session_state.slides),
        "selected_slide_id": _session_state.selected_slide_id,
        "undo_depth": len(_session_state.history.undo_stack),
        "redo_depth": len(_session_state.history.redo_stack),
        "author": _session_state.info.author,
        "date": _session_state.info.date,
    }
    if _session_state.workspace:
        status["project_name"] = _session_state.workspace.project_name
        status["path"] = str(_session_state.workspace.root_path)
        status["asset_count"] = len(_session_state.workspace.assets)
    return json.dumps(status, indent=2)


@mcp.tool()
def set_document_info(ctx: Context, author: str = None, date: str = None) -> str:
    """Set the author and/or date shown on every exported slide (not undoable).

    Parameters:
    - author: Author name
    - date: ISO date (YYYY-MM-DD)
    """
    info = _session_state.set_document_info(author=author, date=date)
    _session_state.auto_save()
    return json.dumps(info.model_dump(), indent=2)


# ═══════════════════════════════════════════════════════════════════════
# SLIDE TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def get_slides(ctx: Context) -> str:
    """List all slides with their IDs, kinds and summaries."""
    return json.dumps(_session_state.slides.to_summary(), indent=2)


@mcp.tool()
def get_slide(ctx: Context, slide_id: str) -> str:
    """Get full details of a specific slide, with notes as plain text.

    Parameters:
    - slide_id: The ID of the slide to retrieve
    """
    slide = _session_state.slides.get(slide_id)
    if not slide:
        return f"Error: Slide '{slide_id}' not found."
    data = slide.model_dump()
    if isinstance(slide, ImageSlide):
        if slide.image_ref and slide.image_ref.startswith("data:"):
            data["image_ref"] = slide.image_ref[:48] + "..."
        for ann in data["annotations"]:
            ann["note_text"] = plain_text(ann["note"])
    return json.dumps(data, indent=2)


@mcp.tool()
def select_slide(ctx: Context, slide_id: str) -> str:
    """Make a slide the current slide.

    Parameters:
    - slide_id: The slide to select
    """
    if _session_state.select_slide(slide_id):
        return f"Selected slide '{slide_id}'."
    return f"Error: Slide '{slide_id}' not found."


@mcp.tool()
def add_slide(ctx: Context, kind: str = IMAGE) -> str:
    """Append a new empty slide and select it.

    Parameters:
    - kind: IMAGE (screenshot with annotations) or NOTE (title and description)
    """
    if kind not in (IMAGE, NOTE):
        return f"Error: Unknown slide kind '{kind}'. Use IMAGE or NOTE."
    slide = _session_state.add_slide(kind)
    _session_state.auto_save()
    return json.dumps({"status": "added", "slide": slide.model_dump()}, indent=2)


@mcp.tool()
def delete_slide(ctx: Context, slide_id: str) -> str:
    """Delete a slide. The last remaining slide cannot be deleted.

    Parameters:
    - slide_id: The ID of the slide to delete
    """
    if _session_state.delete_slide(slide_id):
        _session_state.auto_save()
        return f"Slide '{slide_id}' deleted. {len(_session_state.slides)} slides remaining."
    if len(_session_state.slides) <= 1:
        return "Error: The last remaining slide cannot be deleted."
    return f"Error: Slide '{slide_id}' not found."


@mcp.tool()
def edit_slide(ctx: Context, slide_id: str, name: str = None,
               task_name: str = None, screen_name: str = None,
               title: str = None, description: str = None) -> str:
    """Edit a slide's fields. Each call is one undoable step.

    Parameters:
    - slide_id: The ID of the slide to edit
    - name: Display label in the slide list
    - task_name: Task shown in the header (IMAGE slides)
    - screen_name: Screen name shown in the header (IMAGE slides)
    - title: Title (NOTE slides)
    - description: Description (NOTE slides)
    """
    slide = _session_state.slides.get(slide_id)
    if not slide:
        return f"Error: Slide '{slide_id}' not found."

    requested = {
        "name": name, "task_name": task_name, "screen_name": screen_name,
        "title": title, "description": description,
    }
    changes = {k: v for k, v in requested.items() if v is not None}
    try:
        updated = _session_state.update_slide(slide_id, **changes)
    except ValueError as e:
        return f"Error: {str(e)}"

    _session_state.auto_save()
    return json.dumps({"status": "updated", "slide": updated.model_dump()}, indent=2)


@mcp.tool()
def switch_slide_kind(ctx: Context, slide_id: str, kind: str) -> str:
    """Replace a slide with an empty slide of another kind at the same position.

    Parameters:
    - slide_id: The slide to replace
    - kind: IMAGE or NOTE
    """
    if kind not in (IMAGE, NOTE):
        return f"Error: Unknown slide kind '{kind}'. Use IMAGE or NOTE."
    replacement = _session_state.switch_slide_kind(slide_id, kind)
    if replacement is None:
        return f"Error: Slide '{slide_id}' not found or already a {kind} slide."
    _session_state.auto_save()
    return json.dumps({"status": "replaced", "slide": replacement.model_dump()}, indent=2)


@mcp.tool()
def move_slide(ctx: Context, slide_id: str, to_index: int) -> str:
    """Move a slide to a new 0-based position.

    Parameters:
    - slide_id: The slide to move
    - to_index: Target position
    """
    if _session_state.move_slide(slide_id, to_index):
        _session_state.auto_save()
        return json.dumps({
            "status": "reordered",
            "slides": _session_state.slides.to_summary(),
        }, indent=2)
    return f"Error: Slide '{slide_id}' not found or already at position {to_index}."


@mcp.tool()
def set_slide_image(ctx: Context, slide_id: str, file_path: str) -> str:
    """Attach a screenshot to an IMAGE slide.

    With a project open the file is copied into the project's assets;
    otherwise it is embedded in the document as a data URL.

    Parameters:
    - slide_id: The IMAGE slide
    - file_path: Path to a PNG/JPEG screenshot
    """
    if not os.path.exists(file_path):
        return f"Error: File not found: {file_path}"
    if not isinstance(_session_state.slides.get(slide_id), ImageSlide):
        return f"Error: Slide '{slide_id}' is not an IMAGE slide."

    workspace = _session_state.workspace
    if workspace:
        asset = workspace.import_image(Path(file_path))
        image_ref = workspace.asset_ref(asset.asset_id)
        dimensions = asset.dimensions
    else:
        image_ref = to_data_url(file_path)
        dimensions = None

    _session_state.set_image(slide_id, image_ref)
    _session_state.auto_save()
    return json.dumps({
        "status": "image_set",
        "slide_id": slide_id,
        "image_ref": image_ref if workspace else "data URL",
        "dimensions": dimensions,
    }, indent=2)


@mcp.tool()
def remove_slide_image(ctx: Context, slide_id: str) -> str:
    """Remove the screenshot from an IMAGE slide.

    Parameters:
    - slide_id: The IMAGE slide
    """
    if _session_state.remove_image(slide_id):
        _session_state.auto_save()
        return f"Image removed from slide '{slide_id}'."
    return f"Error: Slide '{slide_id}' is not an IMAGE slide."


# ═══════════════════════════════════════════════════════════════════════
# ANNOTATION TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def add_annotation(ctx: Context, slide_id: str = None, x: float = None,
                   y: float = None, note: str = None, color: str = None) -> str:
    """Add a numbered marker to an IMAGE slide (current slide by default).

    Parameters:
    - slide_id: Target slide (optional)
    - x, y: Position on the 1280x720 virtual canvas (default: centre)
    - note: HTML note text (<b>, <i>, <u>, <font color>, <br>)
    - color: Marker fill colour (e.g. "#ef4444")
    """
    requested = {"x": x, "y": y, "note": note, "color": color}
    fields = {k: v for k, v in requested.items() if v is not None}
    ann = _session_state.add_annotation(slide_id, **fields)
    if ann is None:
        return "Error: Target slide is not an IMAGE slide."
    _session_state.auto_save()
    return json.dumps({"status": "added", "annotation": ann.model_dump()}, indent=2)


@mcp.tool()
def edit_annotation(ctx: Context, annotation_id: str, slide_id: str = None,
                    note: str = None, color: str = None,
                    font_size: str = None, text_align: str = None) -> str:
    """Edit an annotation's note, colour or paragraph style.

    Parameters:
    - annotation_id: The annotation to edit
    - slide_id: Slide holding it (defaults to current slide)
    - note: HTML note text
    - color: Marker fill colour
    - font_size: e.g. "9pt"
    - text_align: left, center or right
    """
    slide = _session_state.image_slide(slide_id)
    current = slide.get_annotation(annotation_id) if slide else None
    if current is None:
        return f"Error: Annotation '{annotation_id}' not found."

    changes: dict[str, Any] = {k: v for k, v in {"note": note, "color": color}.items() if v is not None}
    style_changes = {k: v for k, v in {"font_size": font_size, "text_align": text_align}.items()
                     if v is not None}
    if style_changes:
        changes["style"] = {**current.style.model_dump(), **style_changes}

    try:
        ann = _session_state.update_annotation(annotation_id, slide_id, **changes)
    except ValueError as e:
        return f"Error: {str(e)}"
    _session_state.auto_save()
    return json.dumps({"status": "updated", "annotation": ann.model_dump()}, indent=2)


@mcp.tool()
def place_marker(ctx: Context, annotation_id: str, x: float, y: float,
                 slide_id: str = None) -> str:
    """Move a marker to a point on the 1280x720 virtual canvas (clamped).

    Parameters:
    - annotation_id: The annotation to move
    - x, y: New position
    - slide_id: Slide holding it (defaults to current slide)
    """
    if not _session_state.begin_marker_drag(annotation_id, slide_id):
        return f"Error: Annotation '{annotation_id}' not found."
    position = _session_state.drag_marker(x, y)
    _session_state.release_marker_drag()
    _session_state.auto_save()
    return json.dumps({"status": "placed", "x": position[0], "y": position[1]}, indent=2)


@mcp.tool()
def delete_annotation(ctx: Context, annotation_id: str, slide_id: str = None) -> str:
    """Delete an annotation; remaining markers are renumbered.

    Parameters:
    - annotation_id: The annotation to delete
    - slide_id: Slide holding it (defaults to current slide)
    """
    if _session_state.delete_annotation(annotation_id, slide_id):
        _session_state.auto_save()
        return f"Annotation '{annotation_id}' deleted."
    return f"Error: Annotation '{annotation_id}' not found."


@mcp.tool()
def move_annotation(ctx: Context, annotation_id: str, to_index: int,
                    slide_id: str = None) -> str:
    """Move an annotation to a new 0-based position; markers are renumbered.

    Parameters:
    - annotation_id: The annotation to move
    - to_index: Target position
    - slide_id: Slide holding it (defaults to current slide)
    """
    if _session_state.move_annotation(annotation_id, to_index, slide_id):
        _session_state.auto_save()
        slide = _session_state.image_slide(slide_id)
        return json.dumps({
            "status": "reordered",
            "annotations": [{"id": a.id, "number": a.number} for a in slide.annotations],
        }, indent=2)
    return f"Error: Annotation '{annotation_id}' not found or already at position {to_index}."


# ═══════════════════════════════════════════════════════════════════════
# HISTORY TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def undo(ctx: Context) -> str:
    """Undo the last document edit."""
    description = _session_state.undo()
    if description:
        _session_state.auto_save()
        return f"Undone: {description}. Selected slide: {_session_state.selected_slide_id}"
    return "Nothing to undo."


@mcp.tool()
def redo(ctx: Context) -> str:
    """Redo the last undone edit."""
    description = _session_state.redo()
    if description:
        _session_state.auto_save()
        return f"Redone: {description}. Selected slide: {_session_state.selected_slide_id}"
    return "Nothing to redo."


# ═══════════════════════════════════════════════════════════════════════
# EXPORT TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def export_pptx(ctx: Context, output_path: str = None) -> str:
    """Export the manual as a PowerPoint deck.

    Parameters:
    - output_path: Output file path (defaults to the project's exports dir)
    """
    if not output_path:
        if _session_state.workspace:
            output_path = str(
                _session_state.workspace.exports_dir /
                f"{_session_state.workspace.project_name}.pptx"
            )
        else:
            output_path = str(_projects_dir() / "manual_export.pptx")

    try:
        path = PptxExporter(base_dir=_base_dir()).export(_session_state.document, Path(output_path))
    except ExportError as e:
        logger.error(f"Export failed: {str(e)}")
        return f"Error exporting PowerPoint: {str(e)}"
    return json.dumps({
        "status": "exported",
        "path": str(path),
        "slide_count": len(_session_state.slides),
    }, indent=2)


# ═══════════════════════════════════════════════════════════════════════
# MCP PROMPT
# ═══════════════════════════════════════════════════════════════════════

@mcp.prompt()
def manual_workflow() -> str:
    """Recommended workflow for building a screenshot manual"""
    return """You are helping the user build an annotated-screenshot manual. Follow this workflow:

1. **Create Project**: Use create_project() to set up a new project workspace,
   then set_document_info() with the author's name.

2. **Add Slides**: Use add_slide() for each screen (IMAGE) or chapter page (NOTE).
   - Use set_slide_image() to attach the screenshot
   - Use edit_slide() for task name, screen name, title or description

3. **Annotate**: Use add_annotation() to place numbered markers on a screenshot.
   - Coordinates are on a 1280x720 canvas; the screenshot is centred and letterboxed
   - Use place_marker() to reposition, edit_annotation() for notes and style
   - Use move_annotation() to change numbering order

4. **Arrange**: Use move_slide() to reorder slides, delete_slide() to drop them.

5. **Export**: Use export_pptx() to write the PowerPoint deck.

Tips:
- Use undo() and redo() to step through edits
- Use save_project() periodically to persist state
- Use get_project_status() to check overall progress
"""


# ── Main ────────────────────────────────────────────────────────────────

def main():
    """Run the MCP server"""
    mcp.run()


if __name__ == "__main__":
    main()
