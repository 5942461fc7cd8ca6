'''
Media type parsing and charset normalisation for the `content-type`
header.
'''
import codecs
import dataclasses as dc
import re
from types import MappingProxyType


_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
_MEDIA_TYPE_RE = re.compile(rf'^\s*({_TOKEN})/({_TOKEN})\s*$')
_PARAM_RE = re.compile(rf'^\s*({_TOKEN})\s*=\s*("(?:[^"\\]|\\.)*"|{_TOKEN})\s*$')

DEFAULT_CHARSET = 'utf-8'

CHARSET_ALIASES = MappingProxyType({
    'iso-8859-1': 'latin-1',
})


class MediaTypeError(ValueError):
    ...


@dc.dataclass(frozen=True, slots=True)
class MediaType:
    type: str
    subtype: str
    parameters: MappingProxyType = dc.field(default_factory=lambda: MappingProxyType({}))

    @property
    def essence(self) -> str:
        return f'{self.type}/{self.subtype}'

    @property
    def charset(self) -> str | None:
        return self.parameters.get('charset')

    @property
    def is_text(self) -> bool:
        return self.type == 'text'

    @property
    def is_json(self) -> bool:
        return self.essence == 'application/json'


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return re.sub(r'\\(.)', r'\1', value[1:-1])
    return value


def parse_media_type(header: str) -> MediaType:
    '''
    Parse a `content-type` value such as `application/json; charset=utf-8`.
    Type, subtype and parameter names are lowercased.

    Parameters
    ----------
    header : str

    Returns
    -------
    MediaType

    Raises
    ------
    MediaTypeError
        If the value is not `type/subtype` followed by valid parameters.
    '''
    essence, *raw_params = header.split(';')
    match = _MEDIA_TYPE_RE.match(essence)
    if match is None:
        raise MediaTypeError('invalid media type')

    parameters: dict[str, str] = {}
    for raw in raw_params:
        if not raw.strip():
            continue
        param = _PARAM_RE.match(raw)
        if param is None:
            raise MediaTypeError('invalid parameter format')
        parameters.setdefault(param.group(1).lower(), _unquote(param.group(2)))

    return MediaType(
        type=match.group(1).lower(),
        subtype=match.group(2).lower(),
        parameters=MappingProxyType(parameters),
    )


def get_encoding_charset(charset: str | None = None) -> str:
    '''
    Map a `charset` parameter to a Python codec name: unknown or missing
    charsets fall back to utf-8 and ISO-8859-1 maps to latin-1.

    Examples
    --------
    >>> get_encoding_charset('ISO-8859-1')
    'latin-1'
    >>> get_encoding_charset('bolekeole')
    'utf-8'
    '''
    if not charset:
        return DEFAULT_CHARSET

    alias = CHARSET_ALIASES.get(charset.lower())
    if alias is not None:
        return alias

    try:
        codecs.lookup(charset)
    except LookupError:
        return DEFAULT_CHARSET

    return charset
