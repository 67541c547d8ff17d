"""
色彩科学工具
- Lab(D65) 与 8-bit sRGB / HEX 之间的转换
- CIEDE2000 与 CIE 1976 色差
- 混色误差度量（MixingError）及其工厂
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Dict, NamedTuple, Tuple, Type

import numpy as np
from colour import delta_E
from colour.models import eotf_inverse_sRGB, eotf_sRGB

from .exceptions import UnknownStrategyError


# D65 参考白 (2° observer)
D65_WHITE = np.array([0.95047, 1.00000, 1.08883], dtype=np.float64)

_RGB_TO_XYZ = np.array([
    [0.4124, 0.3576, 0.1805],
    [0.2126, 0.7152, 0.0722],
    [0.0193, 0.1192, 0.9505],
], dtype=np.float64)

_XYZ_TO_RGB = np.array([
    [3.2406, -1.5372, -0.4986],
    [-0.9689, 1.8758, 0.0415],
    [0.0557, -0.2040, 1.0570],
], dtype=np.float64)

_DELTA = 6.0 / 29.0
_POW25_7 = 25.0 ** 7


class LabColor(NamedTuple):
    """CIE Lab 颜色 (D65)。不可变值对象。"""
    l: float
    a: float
    b: float

    @classmethod
    def from_rgb(cls, r: int, g: int, b: int) -> "LabColor":
        return rgb_to_lab(int(r), int(g), int(b))

    @classmethod
    def from_hex(cls, hex_str: str) -> "LabColor":
        return rgb_to_lab(*parse_hex(hex_str))

    def to_rgb(self) -> Tuple[int, int, int]:
        return lab_to_rgb(self)

    def to_hex(self) -> str:
        r, g, b = lab_to_rgb(self)
        return f"#{r:02x}{g:02x}{b:02x}"

    def as_array(self) -> np.ndarray:
        return np.array([self.l, self.a, self.b], dtype=np.float64)


NEUTRAL_GRAY_RGB = (128, 128, 128)


def parse_hex(hex_str: str) -> Tuple[int, int, int]:
    """
    解析 HEX 颜色字符串

    Args:
        hex_str: "#RRGGBB" 或 "#AARRGGBB"（'#' 可省略）

    Returns:
        (r, g, b) 0-255

    Raises:
        ValueError: 去掉前缀后长度不是 6 或 8
    """
    clean = hex_str[1:] if hex_str.startswith("#") else hex_str
    if len(clean) == 6:
        offset = 0
    elif len(clean) == 8:
        offset = 2  # AARRGGBB
    else:
        raise ValueError(
            f"Invalid HEX color format: {hex_str}. "
            f"Must be 6 or 8 characters long, excluding the '#'."
        )
    try:
        return (
            int(clean[offset:offset + 2], 16),
            int(clean[offset + 2:offset + 4], 16),
            int(clean[offset + 4:offset + 6], 16),
        )
    except ValueError as exc:
        raise ValueError(f"Invalid HEX color format: {hex_str}") from exc


@lru_cache(maxsize=4096)
def rgb_to_lab(r: int, g: int, b: int) -> LabColor:
    """8-bit sRGB → Lab(D65)"""
    encoded = np.array([r, g, b], dtype=np.float64) / 255.0
    linear = np.asarray(eotf_sRGB(encoded), dtype=np.float64)
    xyz = _RGB_TO_XYZ @ linear
    xyz_norm = xyz / D65_WHITE

    f_values = np.where(xyz_norm > 0.008856,
                        np.cbrt(xyz_norm),
                        7.787 * xyz_norm + 16.0 / 116.0)
    fx, fy, fz = f_values

    return LabColor(
        float(116.0 * fy - 16.0),
        float(500.0 * (fx - fy)),
        float(200.0 * (fy - fz)),
    )


@lru_cache(maxsize=4096)
def lab_to_rgb(lab: LabColor) -> Tuple[int, int, int]:
    """Lab(D65) → 8-bit sRGB，四舍五入并裁剪到 [0, 255]"""
    l, a, b = lab
    fy = (l + 16.0) / 116.0
    fx = a / 500.0 + fy
    fz = fy - b / 200.0

    f_values = np.array([fx, fy, fz], dtype=np.float64)
    xyz = np.where(f_values > _DELTA,
                   f_values ** 3,
                   3.0 * _DELTA ** 2 * (f_values - 4.0 / 29.0)) * D65_WHITE

    linear = _XYZ_TO_RGB @ xyz
    encoded = np.asarray(eotf_inverse_sRGB(linear), dtype=np.float64)
    rgb = np.clip(np.round(encoded * 255.0), 0, 255).astype(int)
    return int(rgb[0]), int(rgb[1]), int(rgb[2])


def _hue_angle_degrees(a: float, b: float) -> float:
    if a == 0.0 and b == 0.0:
        return 0.0
    angle = math.degrees(math.atan2(b, a))
    if angle < 0.0:
        angle += 360.0
    return angle


def _sin_deg(deg: float) -> float:
    return math.sin(math.radians(deg))


def _cos_deg(deg: float) -> float:
    return math.cos(math.radians(deg))


def delta_e_2000(mixed: LabColor, target: LabColor,
                 k_l: float = 1.0, k_c: float = 1.0, k_h: float = 1.0) -> float:
    """
    CIEDE2000 色差 (Sharma, Wu & Dalal)

    Args:
        mixed: 候选颜色
        target: 目标颜色
        k_l, k_c, k_h: 明度/彩度/色相权重因子

    Returns:
        ΔE00，0 表示完全一致
    """
    l1, a1, b1 = mixed
    l2, a2, b2 = target

    c1 = math.sqrt(a1 * a1 + b1 * b1)
    c2 = math.sqrt(a2 * a2 + b2 * b2)
    c_bar = (c1 + c2) / 2.0

    c_bar7 = c_bar ** 7
    g = 0.5 * (1.0 - math.sqrt(c_bar7 / (c_bar7 + _POW25_7)))

    a1_prime = (1.0 + g) * a1
    a2_prime = (1.0 + g) * a2

    c1_prime = math.sqrt(a1_prime * a1_prime + b1 * b1)
    c2_prime = math.sqrt(a2_prime * a2_prime + b2 * b2)
    c_bar_prime = (c1_prime + c2_prime) / 2.0

    h1_prime = _hue_angle_degrees(a1_prime, b1)
    h2_prime = _hue_angle_degrees(a2_prime, b2)

    delta_l_prime = l2 - l1
    delta_c_prime = c2_prime - c1_prime

    chroma_product = c1_prime * c2_prime
    if chroma_product == 0.0:
        delta_h_prime = 0.0
    else:
        dh = h2_prime - h1_prime
        if dh > 180.0:
            dh -= 360.0
        elif dh < -180.0:
            dh += 360.0
        delta_h_prime = 2.0 * math.sqrt(chroma_product) * _sin_deg(dh / 2.0)

    l_bar_prime = (l1 + l2) / 2.0

    if chroma_product == 0.0:
        h_bar_prime = h1_prime + h2_prime
    else:
        hue_sum = h1_prime + h2_prime
        if abs(h1_prime - h2_prime) > 180.0:
            if hue_sum < 360.0:
                h_bar_prime = (hue_sum + 360.0) / 2.0
            else:
                h_bar_prime = (hue_sum - 360.0) / 2.0
        else:
            h_bar_prime = hue_sum / 2.0

    t = (1.0
         - 0.17 * _cos_deg(h_bar_prime - 30.0)
         + 0.24 * _cos_deg(2.0 * h_bar_prime)
         + 0.32 * _cos_deg(3.0 * h_bar_prime + 6.0)
         - 0.20 * _cos_deg(4.0 * h_bar_prime - 63.0))

    l_offset_sq = (l_bar_prime - 50.0) ** 2
    s_l = 1.0 + (0.015 * l_offset_sq) / math.sqrt(20.0 + l_offset_sq)
    s_c = 1.0 + 0.045 * c_bar_prime
    s_h = 1.0 + 0.015 * c_bar_prime * t

    delta_theta = 30.0 * math.exp(-(((h_bar_prime - 275.0) / 25.0) ** 2))
    c_bar_prime7 = c_bar_prime ** 7
    r_c = 2.0 * math.sqrt(c_bar_prime7 / (c_bar_prime7 + _POW25_7))
    r_t = -_sin_deg(2.0 * delta_theta) * r_c

    l_term = delta_l_prime / (k_l * s_l)
    c_term = delta_c_prime / (k_c * s_c)
    h_term = delta_h_prime / (k_h * s_h)

    return math.sqrt(
        l_term * l_term
        + c_term * c_term
        + h_term * h_term
        + r_t * c_term * h_term
    )


def delta_e_76(mixed: LabColor, target: LabColor) -> float:
    """CIE 1976 色差：Lab 空间欧氏距离"""
    return float(delta_E(np.asarray(mixed, dtype=np.float64),
                         np.asarray(target, dtype=np.float64),
                         method='CIE 1976'))


class MixingError(ABC):
    """混色结果与目标之间的感知距离，数值越小越好"""

    name: str = ""

    @abstractmethod
    def calculate(self, mixed: LabColor, target: LabColor) -> float:
        ...

    def __call__(self, mixed: LabColor, target: LabColor) -> float:
        return self.calculate(mixed, target)


class DeltaE2000(MixingError):
    name = "DeltaE2000"

    def __init__(self, k_l: float = 1.0, k_c: float = 1.0, k_h: float = 1.0):
        self.k_l = k_l
        self.k_c = k_c
        self.k_h = k_h

    def calculate(self, mixed: LabColor, target: LabColor) -> float:
        return delta_e_2000(mixed, target, self.k_l, self.k_c, self.k_h)


class DeltaE76(MixingError):
    name = "DeltaE76"

    def calculate(self, mixed: LabColor, target: LabColor) -> float:
        return delta_e_76(mixed, target)


MIXING_ERRORS: Dict[str, Type[MixingError]] = {
    DeltaE2000.name: DeltaE2000,
    DeltaE76.name: DeltaE76,
}


def create_mixing_error(error_name: str) -> MixingError:
    try:
        return MIXING_ERRORS[error_name]()
    except KeyError:
        raise UnknownStrategyError("mixing error", error_name, MIXING_ERRORS) from None
