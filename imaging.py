import base64
import io

from PIL import Image, UnidentifiedImageError


class ImageError(ValueError):
    pass


def encode_image_data_url(data: bytes, content_type: str = "", max_width: int = 1600, quality: int = 90) -> str:
    """Downscale wide screenshots and return them as a base64 data URI."""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ImageError(f"Could not read image: {e}")

    mime = content_type if (content_type or "").startswith("image/") else Image.MIME.get(image.format or "", "image/png")

    if image.width > max_width:
        scale = max_width / image.width
        size = (max_width, max(1, round(image.height * scale)))
        resized = image.resize(size, Image.Resampling.LANCZOS)
        if mime == "image/webp":
            fmt = "WEBP"
        else:
            fmt, mime = "JPEG", "image/jpeg"
            if resized.mode not in ("RGB", "L"):
                resized = resized.convert("RGB")
        buf = io.BytesIO()
        resized.save(buf, format=fmt, quality=quality)
        data = buf.getvalue()
        print(f"DEBUG[upload]: downscaled {image.width}x{image.height} -> {size[0]}x{size[1]} ({mime})")

    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"
