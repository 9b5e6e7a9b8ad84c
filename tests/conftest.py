import pytest
import sys
from pathlib import Path
from PIL import Image

# Add src to sys.path so we can import defold_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from defold_toolkit.core.models import (  # noqa: E402
    AtlasInfo,
    DesignDocument,
    DesignKind,
    DesignNode,
    DictMetadataStore,
    FontInfo,
    LayerInfo,
    Paint,
    SpriteInfo,
    TextStyle,
    Vector4,
)
from defold_toolkit.exporter.config import ExportConfig  # noqa: E402
from defold_toolkit.exporter.context import ExportResources  # noqa: E402


def make_node(name, kind=DesignKind.FRAME, *, x=0, y=0, width=100, height=100, children=(), metadata=None, **kwargs):
    """Build a design node with sensible defaults; ids follow the name."""
    return DesignNode(
        id=kwargs.pop("id", f"id:{name}"),
        name=name,
        kind=kind,
        x=x,
        y=y,
        width=width,
        height=height,
        children=list(children),
        metadata=DictMetadataStore(metadata or {}),
        **kwargs,
    )


def make_text(name, characters="Play", *, font_size=18, width=80, height=20, **kwargs):
    style = TextStyle(
        characters=characters,
        font_family=kwargs.pop("font_family", "Inter"),
        font_size=font_size,
        align_horizontal=kwargs.pop("align_horizontal", "CENTER"),
        align_vertical=kwargs.pop("align_vertical", "CENTER"),
    )
    return make_node(name, DesignKind.TEXT, width=width, height=height, text=style, **kwargs)


def make_sprite(name, component="c:button", **kwargs):
    return make_node(name, DesignKind.INSTANCE, main_component=component, **kwargs)


RED = Paint(Vector4(1, 0, 0, 1))


@pytest.fixture
def atlases():
    return [
        AtlasInfo(
            name="ui",
            path="/assets/ui.atlas",
            sprites=(
                SpriteInfo("button", 100, 100, component="c:button"),
                SpriteInfo("panel", 64, 64, component="c:panel"),
            ),
        )
    ]


@pytest.fixture
def document(atlases):
    return DesignDocument(
        roots=[],
        layers=[LayerInfo("DEFAULT", "default"), LayerInfo("l:top", "top")],
        fonts=[FontInfo("Inter", "inter", "/fonts/inter.font")],
        atlases=atlases,
    )


@pytest.fixture
def config():
    """Export settings with no settle delay, for fast tests."""
    return ExportConfig(settle_delay=0)


@pytest.fixture
def resources(document, config):
    return ExportResources.from_document(document, config)


@pytest.fixture
def sprite_dir(tmp_path: Path):
    """Two atlas folders of generated PNG sprites."""
    root = tmp_path / "sprites"
    for atlas, sprites in {"ui": {"button": (120, 40), "icon": (32, 32)}, "hud": {"bar": (200, 16)}}.items():
        atlas_dir = root / atlas
        atlas_dir.mkdir(parents=True)
        for name, size in sprites.items():
            Image.new("RGBA", size, color=(255, 255, 255, 0)).save(atlas_dir / f"{name}.png")
    (root / "ui" / "notes.txt").write_text("not a sprite", encoding="utf-8")
    return root
