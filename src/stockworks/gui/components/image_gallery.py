"""Gallery of generated images."""

from __future__ import annotations

import io
from typing import List, Optional

import streamlit as st
from PIL import Image

from stockworks.apps.stock_studio.core.models import ImageItem
from stockworks.gui.config import GALLERY_COLUMNS, THUMBNAIL_MAX_SIZE


@st.cache_data(show_spinner=False, max_entries=256)
def load_thumbnail(
    image_id: str, image_data: bytes, max_size: int = THUMBNAIL_MAX_SIZE
) -> Image.Image:
    """
    Decode and shrink a generated image (CACHED by image id).

    Args:
        image_id: Stable id used as part of the cache key
        image_data: Raw PNG bytes
        max_size: Maximum dimension for resizing

    Returns:
        Thumbnail as a PIL image
    """
    img = Image.open(io.BytesIO(image_data))
    img.load()

    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGB")

    if max(img.size) > max_size:
        ratio = max_size / max(img.size)
        new_size = tuple(int(dim * ratio) for dim in img.size)
        img = img.resize(new_size, Image.Resampling.LANCZOS)

    return img


def render_image_gallery(
    images: List[ImageItem],
    key_prefix: str = "gallery",
    columns: int = GALLERY_COLUMNS,
) -> Optional[ImageItem]:
    """
    Render generated images with download and metadata buttons.

    Returns:
        The image whose "Optimize Metadata" button was clicked, if any
    """
    chosen: Optional[ImageItem] = None
    cols = st.columns(columns)

    for idx, image in enumerate(images):
        with cols[idx % columns]:
            with st.container(border=True):
                st.image(
                    load_thumbnail(image.id, image.image_bytes()),
                    caption=f"{image.aspect_ratio} · {image.prompt_text[:80]}",
                    use_container_width=True,
                )
                col_dl, col_meta = st.columns(2)
                with col_dl:
                    st.download_button(
                        "⬇️ Download",
                        data=image.image_bytes(),
                        file_name=image.download_filename(),
                        mime="image/png",
                        key=f"{key_prefix}_{image.id}_download",
                        use_container_width=True,
                    )
                with col_meta:
                    if st.button(
                        "🏷️ Optimize Metadata",
                        key=f"{key_prefix}_{image.id}_metadata",
                        use_container_width=True,
                    ):
                        chosen = image

    return chosen
