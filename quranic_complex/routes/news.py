from flask import Blueprint, jsonify
from quranic_complex.decorators import api_role_required
from quranic_complex.forms import NewsForm, NewsUpdateForm, submitted_data
from quranic_complex.routes.api import locale_arg, validate_or_raise, uploaded
from quranic_complex.services import news as news_service

bp = Blueprint('news', __name__, url_prefix='/api/news')


@bp.route('', methods=['GET'])
def list_news():
    return jsonify(news_service.list_news(locale_arg(required=True)))


@bp.route('', methods=['POST'])
@api_role_required('ADMIN')
def create_news():
    locale = locale_arg()
    form = NewsForm()
    validate_or_raise(form, 'Invalid news data')
    news = news_service.create_news(submitted_data(form), locale, image=uploaded('image'))
    return jsonify(news), 201


@bp.route('/<slug>', methods=['GET'])
def get_news(slug):
    return jsonify(news_service.get_news(slug, locale_arg()))


@bp.route('/<news_id>', methods=['PATCH'])
@api_role_required('ADMIN')
def update_news(news_id):
    locale = locale_arg()
    form = NewsUpdateForm()
    validate_or_raise(form, 'Invalid news data')
    news = news_service.update_news(
        news_id,
        submitted_data(form, exclude=('remove_image',)),
        locale,
        image=uploaded('image'),
        remove_image=form.remove_image.data,
    )
    return jsonify(news)


@bp.route('/<news_id>', methods=['DELETE'])
@api_role_required('ADMIN')
def delete_news(news_id):
    news_service.delete_news(news_id)
    return jsonify({'message': 'News item deleted successfully'})
