"""
Attributes derived from decoded measurements rather than read verbatim.
"""
import math

from commercialx.enrichment.enums import RoofHeight

# Overall height thresholds in inches; each band includes its lower bound.
MEDIUM_ROOF_MIN_INCHES = 80
HIGH_ROOF_MIN_INCHES = 90


def roof_height_category(height_inches: float) -> RoofHeight:
    """
    Classify a van/truck roof from its overall height.

    Args:
        height_inches: Overall vehicle height, must be finite and >= 0.
            Callers filter out missing or bad measurements first.

    Returns:
        Low Roof below 80", Medium Roof from 80" up to 90", High Roof at 90" and above.
    """
    if isinstance(height_inches, bool) or not math.isfinite(height_inches) or height_inches < 0:
        raise ValueError(f"overall height must be a non-negative number, got {height_inches!r}")

    if height_inches < MEDIUM_ROOF_MIN_INCHES:
        return RoofHeight.LOW
    if height_inches < HIGH_ROOF_MIN_INCHES:
        return RoofHeight.MEDIUM
    return RoofHeight.HIGH
