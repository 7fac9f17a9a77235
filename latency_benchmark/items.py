"""Conversion between plain dicts and DynamoDB typed attribute maps."""


def dict_to_item(raw):
    if type(raw) is dict:
        resp = {}
        for k, v in raw.items():
            resp[k] = to_attribute(v)
        return resp
    return to_attribute(raw)


def to_attribute(v):
    if v is None:
        return {'NULL': True}
    elif type(v) is bool:
        return {'BOOL': v}
    elif type(v) is str:
        return {'S': v}
    elif type(v) is int or type(v) is float:
        return {'N': str(v)}
    elif type(v) is bytes or type(v) is bytearray:
        return {'B': bytes(v)}
    elif type(v) is dict:
        return {'M': dict_to_item(v)}
    elif type(v) is list or type(v) is tuple:
        return {'L': [to_attribute(i) for i in v]}
    raise TypeError("Cannot store value of type {} in DynamoDB".format(type(v).__name__))


def item_to_dict(item):
    return {k: from_attribute(v) for k, v in item.items()}


def from_attribute(attribute):
    (kind, value), = attribute.items()
    if kind == 'NULL':
        return None
    elif kind in ('S', 'BOOL'):
        return value
    elif kind == 'N':
        return parse_number(value)
    elif kind == 'B':
        return bytes(value)
    elif kind == 'M':
        return item_to_dict(value)
    elif kind == 'L':
        return [from_attribute(i) for i in value]
    raise TypeError("Unsupported DynamoDB attribute type {}".format(kind))


def parse_number(value):
    try:
        return int(value)
    except ValueError:
        return float(value)
