import math

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def _contains(value, needle, ignore_case=False):
    if ignore_case:
        return needle.lower() in value.lower()
    return needle in value


def filter_participants(records, p_no=None, mobile_no=None, name=None, trade=None, gender=None):
    """Apply every supplied filter (AND). Empty or None filters are ignored."""
    result = list(records)
    if p_no:
        result = [p for p in result if _contains(p['p_no'], p_no, ignore_case=True)]
    if mobile_no:
        result = [p for p in result if _contains(p['mobile_no'], mobile_no)]
    if name:
        result = [p for p in result if _contains(p['name'], name, ignore_case=True)]
    if trade:
        result = [p for p in result if p['trade'] == trade]
    if gender:
        result = [p for p in result if p['gender'] == gender]
    return result


def paginate(items, page=DEFAULT_PAGE, limit=DEFAULT_LIMIT):
    """Slice one page out of `items`.

    Pages outside 1..totalPages give an empty slice rather than an error.
    """
    total = len(items)
    total_pages = math.ceil(total / limit)
    if page < 1:
        page_items = []
    else:
        start = (page - 1) * limit
        page_items = items[start:min(start + limit, total)]

    return page_items, {
        'total': total,
        'page': page,
        'totalPages': total_pages,
        'limit': limit,
        'hasNext': page < total_pages,
        'hasPrev': page > 1,
    }


def search_participants(records, p_no=None, mobile_no=None, name=None, trade=None, gender=None,
                        page=DEFAULT_PAGE, limit=DEFAULT_LIMIT):
    matches = filter_participants(records, p_no=p_no, mobile_no=mobile_no, name=name,
                                  trade=trade, gender=gender)
    participants, pagination = paginate(matches, page=page, limit=limit)
    return {'participants': participants, 'pagination': pagination}


def distinct_values(records, field):
    """Non-empty distinct values of `field`, in first-seen order."""
    seen = {}
    for record in records:
        value = record.get(field)
        if value:
            seen.setdefault(value, None)
    return list(seen)
