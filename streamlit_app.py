"""
Tile Mosaic — Gallery Edition

Run with:
    streamlit run streamlit_app.py
"""

from __future__ import annotations

import io
import time

import numpy as np
import streamlit as st
from PIL import Image, ImageDraw

from tile_mosaic.color_utils import mosaic_psnr
from tile_mosaic.composer import MosaicComposer
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import DecodeError, MosaicError
from tile_mosaic.image_io import load_raster

# -- Page config -------------------------------------------------------
st.set_page_config(
    page_title="Tile Mosaic",
    page_icon=None,
    layout="wide",
    initial_sidebar_state="collapsed",
)

_DEFAULTS = MosaicConfig()
_UPLOAD_TYPES = ["jpg", "jpeg", "png", "webp", "bmp", "jfif"]

# -- CSS ---------------------------------------------------------------
st.markdown("""
<style>
    @import url('https://fonts.googleapis.com/css2?family=Cormorant+Garamond:ital,wght@0,300;0,400;1,300&family=Inter:wght@200;300;400&display=swap');

    .stApp {
        background-color: #faf9f6;
        color: #2a2a2a;
        font-family: 'Inter', 'Helvetica Neue', sans-serif;
    }
    .block-container {
        max-width: 1000px;
        padding-top: 3.5rem;
        padding-bottom: 4rem;
    }
    .gallery-title {
        font-family: 'Cormorant Garamond', 'Georgia', serif;
        font-size: 2.8rem;
        font-weight: 300;
        letter-spacing: 0.06em;
        text-align: center;
        color: #1a1a1a;
        border-bottom: 1px solid #1a1a1a;
        padding-bottom: 0.6rem;
        margin-bottom: 0.5rem;
    }
    .gallery-subtitle {
        font-family: 'Inter', sans-serif;
        font-size: 0.75rem;
        font-weight: 300;
        letter-spacing: 0.04em;
        line-height: 1.8;
        margin-bottom: 3.5rem;
    }
    .slider-desc {
        font-family: 'Cormorant Garamond', 'Georgia', serif;
        font-size: 0.95rem;
        font-style: italic;
        color: #6a6a64;
        line-height: 1.6;
        margin-top: -0.5rem;
        margin-bottom: 1rem;
    }
    .label-detail {
        font-family: 'Cormorant Garamond', 'Georgia', serif;
        font-size: 0.85rem;
        font-style: italic;
        color: #a0a09a;
        text-align: center;
    }
    .stButton > button, .stDownloadButton > button {
        background-color: #2a2a2a !important;
        color: #faf9f6 !important;
        border: 1px solid #2a2a2a !important;
        border-radius: 0px !important;
        letter-spacing: 0.10em;
        text-transform: uppercase;
        font-size: 0.6rem;
        padding: 0.8rem 1.5rem;
    }
    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
    header {visibility: hidden;}
</style>
""", unsafe_allow_html=True)


# -- Helpers -----------------------------------------------------------

def _add_passepartout(img: Image.Image, border: int = 20) -> Image.Image:
    w, h = img.size
    bg = (250, 249, 246)
    canvas = Image.new("RGB", (w + border * 2, h + border * 2), bg)
    canvas.paste(img, (border, border))
    draw = ImageDraw.Draw(canvas)
    draw.rectangle(
        [border - 1, border - 1, border + w, border + h],
        outline=(224, 222, 216), width=1,
    )
    return canvas


def _describe(text: str) -> None:
    st.markdown(f'<div class="slider-desc">{text}</div>', unsafe_allow_html=True)


def _thumbnail(data: bytes) -> Image.Image | None:
    """Tile preview, or None when the upload is not a readable image."""
    try:
        return Image.fromarray(load_raster(io.BytesIO(data)))
    except DecodeError:
        return None


# -- Title -------------------------------------------------------------
st.markdown(
    '<div class="gallery-title">Mosaic Creator</div>',
    unsafe_allow_html=True,
)
st.markdown(
    '<div class="gallery-subtitle">'
    "Upload a source image and a handful of tile images. The source is cut "
    "into a grid of cells and every cell is replaced by the tile whose "
    "average colour comes closest. The tiles are darkened over a washed-out "
    "copy of the source, so its tones carry through the finished mosaic."
    "</div>",
    unsafe_allow_html=True,
)

# -- Controls ----------------------------------------------------------
ctrl1, ctrl2 = st.columns(2)
with ctrl1:
    tile_size = st.slider("Cell size (px)", 4, 128, _DEFAULTS.tile_width)
    _describe(
        "Size of one source cell. Smaller cells mean more tiles and a more "
        "faithful mosaic; larger cells make each tile easier to recognise."
    )
    quadrants = st.slider("Quadrants", 1, 4, _DEFAULTS.quadrant_division_count)
    _describe(
        "Each cell and tile is compared as a grid of this many colours per "
        "side. Higher values match structure as well as colour."
    )
with ctrl2:
    scale = st.slider("Scale", 1, 8, _DEFAULTS.scale_multiplier)
    _describe("Renders every tile at cell size times this factor.")
    seed = st.number_input("Seed", min_value=0, value=42, step=1)
    _describe("Fixes the order in which tiles are laid down.")

st.markdown("---")

# -- Upload ------------------------------------------------------------
uploaded = st.file_uploader("Select source", type=_UPLOAD_TYPES)
uploaded_tiles = st.file_uploader(
    "Select tiles", type=_UPLOAD_TYPES, accept_multiple_files=True,
)

if uploaded is not None and uploaded_tiles:
    try:
        original = Image.fromarray(load_raster(io.BytesIO(uploaded.getvalue())))
    except DecodeError as exc:
        st.error(str(exc))
        st.stop()
    tile_data = [f.getvalue() for f in uploaded_tiles]
    tile_names = [f.name for f in uploaded_tiles]

    if st.button("COMPOSE", type="primary", use_container_width=True):
        cfg = MosaicConfig(
            tile_width=tile_size,
            tile_height=tile_size,
            scale_multiplier=scale,
            quadrant_division_count=quadrants,
            seed=int(seed),
        )

        t0 = time.perf_counter()
        try:
            with st.spinner("Composing ..."):
                result = MosaicComposer(cfg).compose(
                    original, [io.BytesIO(d) for d in tile_data], names=tile_names,
                )
        except MosaicError as exc:
            st.error(str(exc))
            st.stop()
        elapsed = time.perf_counter() - t0

        mosaic = result.image
        h, w = mosaic.shape[:2]
        reference = original.crop(
            (0, 0, result.x_tile_count * tile_size, result.y_tile_count * tile_size),
        ).resize((w, h), Image.LANCZOS)
        psnr = mosaic_psnr(np.array(reference, dtype=np.uint8), mosaic)

        st.markdown("---")
        mosaic_img = Image.fromarray(mosaic)
        st.image(_add_passepartout(mosaic_img, border=28), use_container_width=True)

        buf = io.BytesIO()
        mosaic_img.save(buf, format="JPEG", quality=_DEFAULTS.jpeg_quality)
        _, dl_col, _ = st.columns([1, 2, 1])
        with dl_col:
            st.download_button(
                "SAVE ART",
                data=buf.getvalue(),
                file_name="tile_mosaic.jpg",
                mime="image/jpeg",
                use_container_width=True,
            )

        m1, m2, m3, m4 = st.columns(4)
        m1.metric("Cells", f"{result.x_tile_count} × {result.y_tile_count}")
        m2.metric("Tiles used", f"{result.tiles_used} / {len(result.tile_names)}")
        m3.metric("Time", f"{elapsed:.1f} s")
        m4.metric("PSNR", f"{psnr:.1f} dB")

    else:
        prev1, prev2 = st.columns(2)
        with prev1:
            st.image(original, use_container_width=True)
            st.markdown('<div class="label-detail">Source</div>', unsafe_allow_html=True)
        with prev2:
            st.image(
                [t for t in map(_thumbnail, tile_data[:12]) if t is not None],
                width=64,
            )
            st.markdown(
                f'<div class="label-detail">{len(tile_data)} tiles</div>',
                unsafe_allow_html=True,
            )

else:
    st.markdown(
        '<p style="font-family: Cormorant Garamond, Georgia, serif; '
        "color: #bbb; font-size: 1rem; font-weight: 300; "
        'font-style: italic; margin-top: 2rem;">'
        "Select a source and some tiles to begin.</p>",
        unsafe_allow_html=True,
    )
