import io

import qrcode
from PIL import ImageColor
from qrcode.image.styledpil import StyledPilImage
from qrcode.image.styles.moduledrawers import (
    SquareModuleDrawer, GappedSquareModuleDrawer,
    CircleModuleDrawer, RoundedModuleDrawer
)
from qrcode.image.styles.colormasks import SolidFillColorMask
from qrcode.image.svg import SvgPathFillImage

ERROR_CORRECTION = {
    "L": qrcode.constants.ERROR_CORRECT_L,
    "M": qrcode.constants.ERROR_CORRECT_M,
    "Q": qrcode.constants.ERROR_CORRECT_Q,
    "H": qrcode.constants.ERROR_CORRECT_H,
}

DRAWERS = {
    "classic": SquareModuleDrawer,
    "rounded": RoundedModuleDrawer,
    "dots": CircleModuleDrawer,
    "classy": GappedSquareModuleDrawer,
}


def encoded_payload(qr, base_url: str) -> str:
    """Dynamic codes encode the redirect URL, static ones the payload itself."""
    if qr.is_dynamic:
        return f"{base_url}/r/{qr.short_code}"
    return qr.destination_url


def _rgb(color: str | None, default):
    try:
        return ImageColor.getrgb(color) if color else default
    except ValueError:
        return default


def _build(data: str, error_correction: str | None, box_size: int = 10) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECTION.get((error_correction or "M").upper(), qrcode.constants.ERROR_CORRECT_M),
        box_size=box_size,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)
    return qr


def render_png(data: str, color_fg="#000000", color_bg="#FFFFFF", style="classic", error_correction="M") -> bytes:
    fill_rgb = _rgb(color_fg, (0, 0, 0))
    back_rgb = _rgb(color_bg, (255, 255, 255))
    drawer = DRAWERS.get((style or "classic").lower(), SquareModuleDrawer)()

    qr_img = _build(data, error_correction).make_image(
        image_factory=StyledPilImage,
        module_drawer=drawer,
        color_mask=SolidFillColorMask(back_color=back_rgb, front_color=fill_rgb)
    ).convert("RGB")

    buf = io.BytesIO()
    qr_img.save(buf, format="PNG")
    return buf.getvalue()


def render_svg(data: str, color_fg="#000000", color_bg="#FFFFFF", error_correction="M") -> bytes:
    # per-call subclass so colours never leak between renders
    factory = type("ColoredSvgImage", (SvgPathFillImage,), {
        "background": color_bg or "#FFFFFF",
        "QR_PATH_STYLE": {
            "fill": color_fg or "#000000",
            "fill-opacity": "1",
            "fill-rule": "nonzero",
            "stroke": "none",
        },
    })
    img = _build(data, error_correction).make_image(image_factory=factory)
    return img.to_string(encoding="utf-8")
