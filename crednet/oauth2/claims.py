import re


SCOPE_CLAIMS = {
    'profile': ('name', 'picture'),
    'email': ('email', 'email_verified'),
    'symbolic_name': ('symbolic_name', 'symbolic_name_plain'),
    'tokens': ('token_balance',),
    'reputation': ('reputation', 'breadcrumb_score'),
}

_SYMBOLIC_MARKERS = re.compile(r'§\(|\)')


def format_symbolic_name(name):
    """Wrap a plain handle into its ``§(name)`` form."""
    if not name:
        return '§(Anonymous)'
    if name.startswith('§'):
        return name
    return f'§({name})'


def allowed_claims(scopes):
    claims = {'sub'}
    for scope in scopes:
        claims.update(SCOPE_CLAIMS.get(scope, ()))
    return claims


def project_user_info(subject, user, scopes):
    """Build the user-info document for ``user`` restricted to ``scopes``.

    ``sub`` is always present. Every other claim is emitted only when the
    scope that governs it was granted, whatever else ``user`` carries.
    """
    info = {'sub': str(subject)}

    if 'profile' in scopes:
        info['name'] = getattr(user, 'display_name', None) or 'User'
        info['picture'] = getattr(user, 'photo_url', None)

    if 'email' in scopes:
        info['email'] = getattr(user, 'email', None)
        info['email_verified'] = bool(getattr(user, 'email_verified', False))

    if 'symbolic_name' in scopes:
        symbolic_name = getattr(user, 'symbolic_name', None)
        info['symbolic_name'] = symbolic_name or format_symbolic_name('User')
        plain = _SYMBOLIC_MARKERS.sub('', symbolic_name) if symbolic_name else ''
        info['symbolic_name_plain'] = plain or 'User'

    if 'tokens' in scopes:
        info['token_balance'] = getattr(user, 'token_balance', None) or 0

    if 'reputation' in scopes:
        info['reputation'] = getattr(user, 'reputation', None) or 'chrome'
        info['breadcrumb_score'] = getattr(user, 'breadcrumb_score', None) or 0

    return info
