from flask import Blueprint, request, session, redirect, render_template, url_for
from crednet.models import User
from crednet.models.ext import db
from crednet.routes.utils import current_user


bp = Blueprint('main', __name__)


def _safe_next(target):
    if target and target.startswith('/') and not target.startswith('//'):
        return target
    return url_for('main.index')


@bp.route('/', methods=('GET', 'POST'))
def index():
    if request.method == 'POST':
        username = (request.form.get('username') or '').strip()
        if not username:
            return render_template('main/index.html', user=None, error='Username is required.'), 400
        user = User.query.filter_by(username=username).first()
        if not user:
            user = User(username=username, display_name=username)
            db.session.add(user)
            db.session.commit()
        session['id'] = user.id
        return redirect(_safe_next(request.args.get('next')))
    return render_template('main/index.html', user=current_user())


@bp.route('/logout')
def logout():
    session.pop('id', None)
    return redirect(url_for('main.index'))
