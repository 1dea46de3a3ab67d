from flask import Blueprint, request, jsonify
from quranic_complex.decorators import api_role_required
from quranic_complex.forms import GalleryForm, CategoryForm
from quranic_complex.routes.api import locale_arg, validate_or_raise, uploaded
from quranic_complex.services import gallery as gallery_service
from quranic_complex.services.storage import has_file

bp = Blueprint('gallery', __name__, url_prefix='/api/gallery')


@bp.route('', methods=['GET'])
def list_gallery():
    return jsonify(gallery_service.list_gallery(locale_arg()))


@bp.route('', methods=['POST'])
@api_role_required('ADMIN')
def create_gallery_item():
    form = GalleryForm()
    validate_or_raise(form, 'Invalid gallery data')
    item = gallery_service.create_gallery_item(form.category.data, form.translations.data, uploaded('image'))
    return jsonify(item), 201


@bp.route('/categories', methods=['GET'])
def list_categories():
    return jsonify(gallery_service.list_categories())


@bp.route('/categories', methods=['POST'])
@api_role_required('ADMIN')
def create_category():
    form = CategoryForm(formdata=None, data=request.get_json(silent=True) or {})
    validate_or_raise(form, 'Category name is required')
    return jsonify(gallery_service.create_category(form.name.data)), 201


@bp.route('/categories/<path:name>', methods=['DELETE'])
@api_role_required('ADMIN')
def delete_category(name):
    payload = request.get_json(silent=True) or {}
    count = gallery_service.delete_category(name, payload.get('replacementCategory'))
    return jsonify({'message': 'Category deleted successfully', 'updated': count})


@bp.route('/<item_id>', methods=['GET'])
def get_gallery_item(item_id):
    return jsonify(gallery_service.get_gallery_item(item_id))


@bp.route('/<item_id>', methods=['PUT'])
@api_role_required('ADMIN')
def update_gallery_item(item_id):
    form = GalleryForm()
    validate_or_raise(form, 'Invalid gallery data')

    # A non-empty file replaces the image, an empty one clears it.
    image = None
    clear_image = False
    if 'image' in request.files:
        file = request.files['image']
        if has_file(file):
            image = file
        else:
            clear_image = True

    item = gallery_service.update_gallery_item(
        item_id,
        category=form.category.data if 'category' in request.form else None,
        translations=form.translations.data,
        image=image,
        clear_image=clear_image,
    )
    return jsonify(item)


@bp.route('/<item_id>', methods=['DELETE'])
@api_role_required('ADMIN')
def delete_gallery_item(item_id):
    gallery_service.delete_gallery_item(item_id)
    return jsonify({'message': 'Gallery item deleted successfully'})
