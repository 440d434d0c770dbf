"""
Utility functions for catalog operations

The variant matrix of a product is the cross product of its selected sizes and
colors. Cells are plain dicts: {'size_id': str, 'color_id': str, 'stock': int}.
"""


def _pair(size_id, color_id):
    return (str(size_id), str(color_id))


def unique_in_order(values):
    """Drop duplicates, keeping the first occurrence"""
    seen = set()
    result = []
    for value in values:
        key = str(value)
        if key not in seen:
            seen.add(key)
            result.append(value)
    return result


def build_variant_matrix(size_ids, color_ids, existing=None):
    """
    Derive the variant cells for the given size and color axes.

    Cells are produced size-major (for each size, for each color). A cell
    keeps the stock of the matching entry in `existing`; new pairs start at 0.
    Entries of `existing` whose pair is no longer on the axes are dropped.
    """
    stock_by_pair = {}
    for cell in existing or []:
        pair = _pair(cell['size_id'], cell['color_id'])
        # First occurrence wins, matching a lookup over the current list
        stock_by_pair.setdefault(pair, int(cell.get('stock') or 0))

    matrix = []
    for size_id in unique_in_order(size_ids or []):
        for color_id in unique_in_order(color_ids or []):
            matrix.append({
                'size_id': str(size_id),
                'color_id': str(color_id),
                'stock': stock_by_pair.get(_pair(size_id, color_id), 0),
            })
    return matrix


def variant_matrix_changed(new_matrix, current_matrix):
    """True when the set of (size, color) pairs differs between two matrices"""
    if len(new_matrix) != len(current_matrix):
        return True
    current_pairs = {_pair(cell['size_id'], cell['color_id']) for cell in current_matrix}
    return not all(_pair(cell['size_id'], cell['color_id']) in current_pairs for cell in new_matrix)


def merge_variant_stock(size_ids, color_ids, submitted=None, persisted=None):
    """
    Matrix to persist on submit.

    Stock for each cell comes from the submitted variants first, then from the
    product's persisted variants with the same pair, then 0.
    """
    sources = list(submitted or []) + list(persisted or [])
    return build_variant_matrix(size_ids, color_ids, sources)


def total_variant_stock(matrix, fallback_stock=0):
    """Sum of variant stock, or the product's own stock when there are no variants"""
    if matrix:
        return sum(int(cell.get('stock') or 0) for cell in matrix)
    return int(fallback_stock or 0)


def normalize_tags(tags):
    """Trim tags, drop empty ones and duplicates"""
    cleaned = []
    for tag in tags or []:
        tag = str(tag).strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


def metadata_to_dict(metadata):
    """
    Accept metadata either as {key: value} or as [{'key': k, 'value': v}, ...].
    Later keys overwrite earlier ones.
    """
    if not metadata:
        return {}
    if isinstance(metadata, dict):
        return {str(key): str(value) for key, value in metadata.items()}
    result = {}
    for item in metadata:
        result[str(item['key'])] = str(item['value'])
    return result
