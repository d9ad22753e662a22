"""
Value normalisation for attributes read through the Accessibility API.
"""

import numbers

# Placeholder strings PyObjC produces for a bridged nil
NULL_MARKERS = ("<null>", "(null)")


def clean_text(value) -> str:
    """Turn a bridged string attribute (role, description) into a stripped str.

    Returns:
        The text, or an empty string for None and nil placeholders
    """
    if value is None:
        return ""
    text = str(value).strip()
    if text in NULL_MARKERS:
        return ""
    return text


def normalize_attribute_value(value):
    """Convert a bridged attribute value into a plain Python value.

    Numbers stay numbers (bridged NSNumber subclasses become int/float/bool),
    everything else goes through clean_text. Empty results become None so that
    absent and blank attributes look the same.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return bool(value)
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        return float(value)
    return clean_text(value) or None
