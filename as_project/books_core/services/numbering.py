import re


def next_number(queryset, field, prefix, width=4):
    """
    Next "<PREFIX>-NNNN" for a business: highest numeric suffix + 1.
    Numbers that don't follow the pattern are ignored.
    """
    pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
    highest = 0
    for value in queryset.filter(
        **{f"{field}__startswith": f"{prefix}-"}
    ).values_list(field, flat=True):
        match = pattern.match(value)
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}-{highest + 1:0{width}d}"
