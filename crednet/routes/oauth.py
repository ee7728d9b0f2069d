from flask import Blueprint, request, redirect, render_template, jsonify, url_for
from crednet.oauth2.errors import OAuth2Error
from crednet.oauth2.ext import oauth2
from crednet.oauth2.provider import error_response
from crednet.routes.utils import current_user, current_user_id


bp = Blueprint('oauth', __name__)


SCOPE_DESCRIPTIONS = {
    'profile': 'View your basic profile information',
    'email': 'View your email address',
    'symbolic_name': 'View your §name handle',
    'tokens': 'View your token balance',
    'reputation': 'View your reputation and breadcrumb score',
}


@bp.errorhandler(OAuth2Error)
def handle_oauth2_error(error):
    return error_response(error)


def _client_fields():
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload
    return {
        'name': request.form.get('name'),
        'logo': request.form.get('logo'),
        'redirect_uris': request.form.getlist('redirect_uris'),
        'scopes': request.form.get('scopes'),
    }


@bp.route('/oauth/clients', methods=['POST'])
def register_client():
    fields = _client_fields()
    redirect_uris = fields.get('redirect_uris') or []
    if isinstance(redirect_uris, str):
        redirect_uris = redirect_uris.split()
    credentials = oauth2.server.register_client(
        current_user_id(),
        fields.get('name'),
        redirect_uris,
        logo_url=fields.get('logo'),
        scopes=fields.get('scopes'),
    )
    credentials['message'] = 'Store the client secret now, it will not be shown again.'
    return jsonify(credentials), 201


@bp.route('/oauth/clients')
def list_clients():
    return jsonify(oauth2.server.list_clients(current_user_id()))


@bp.route('/oauth/clients/<client_id>/deactivate', methods=['POST'])
def deactivate_client(client_id):
    oauth2.server.deactivate_client(current_user_id(), client_id)
    return jsonify(status='ok')


@bp.route('/oauth/authorize', methods=['GET', 'POST'])
@oauth2.authorize_handler
def authorize(*args, **kwargs):
    if user := current_user():
        if request.method == 'GET':
            kwargs['user'] = user
            kwargs['scope_descriptions'] = SCOPE_DESCRIPTIONS
            return render_template('oauth/authorize.html', **kwargs)
        confirm = request.form.get('confirm', 'no')
        return confirm == 'yes'
    return redirect(url_for('main.index', next=request.full_path))


@bp.route('/oauth/token', methods=['POST'])
@oauth2.token_handler
def access_token():
    return None


@bp.route('/oauth/revoke', methods=['POST'])
@oauth2.revoke_handler
def revoke_token():
    return None


@bp.route('/oauth/userinfo')
@oauth2.require_oauth()
def userinfo():
    return jsonify(oauth2.server.get_user_info(request.oauth.access_token))


@bp.route('/oauth/apps')
def authorized_apps():
    return jsonify(oauth2.server.list_authorized_apps(current_user_id()))


@bp.route('/oauth/apps/<client_id>/revoke', methods=['POST'])
def revoke_app(client_id):
    oauth2.server.revoke_app(current_user_id(), client_id)
    return jsonify(status='ok')


@bp.route('/oauth/errors')
def errors():
    return jsonify(
        error=request.args.get('error'),
        error_description=request.args.get('error_description'),
    ), 400


@bp.route('/.well-known/oauth-authorization-server')
def metadata():
    return jsonify(oauth2.server.metadata(
        request.host_url.rstrip('/'),
        {
            'authorization_endpoint': url_for('oauth.authorize', _external=True),
            'token_endpoint': url_for('oauth.access_token', _external=True),
            'userinfo_endpoint': url_for('oauth.userinfo', _external=True),
            'revocation_endpoint': url_for('oauth.revoke_token', _external=True),
        },
    ))
