from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select, or_, cast, String, func
from repairdesk import get_db
from repairdesk.constants.permissions import ROLE_ADMIN
from repairdesk.decorators.auth import require_permissions, require_roles
from repairdesk.decorators.audit import audit_log
from repairdesk.models.product import Product, SaleSerial
from repairdesk.services.products import create_product, update_product, record_sale, product_json, sale_json
from repairdesk.utils.listing import apply_pagination, apply_sort, list_response

prd_bp = Blueprint('products', __name__)

SORTABLE = {
    'name': Product.name,
    'category': Product.category,
    'quantity': Product.quantity,
    'retail_price': Product.retail_price,
    'id': Product.id,
}


@prd_bp.get('')
@require_permissions('PRD.READ')
def list_products():
    session = get_db()
    q = session.query(Product)
    search = (request.args.get('search') or '').strip()
    if search:
        like = f'%{search}%'
        q = q.filter(or_(Product.name.ilike(like), cast(Product.id, String).ilike(like)))
    category = request.args.get('category')
    if category:
        q = q.filter(Product.category == category)
    if request.args.get('in_stock') in ('1', 'true'):
        q = q.filter(Product.quantity > 0)
    q = apply_sort(q, request.args.get('sort') or 'name', SORTABLE, Product.id)
    paged_q, total, limit, offset = apply_pagination(q)
    rows = [product_json(p) for p in paged_q.all()]
    return list_response(rows, total, limit, offset, marker=f"{search}|{category}|{request.args.get('in_stock', '')}")


@prd_bp.get('/<int:product_id>')
@require_permissions('PRD.READ')
def get_product(product_id: int):
    return product_json(_load(product_id))


@prd_bp.post('')
@require_permissions('PRD.MANAGE')
@audit_log('PRD.CREATE', entity='Product', entity_id_key='id', meta_keys=['name', 'category', 'quantity'])
def create():
    session = get_db()
    p = create_product(session, request.json or {})
    session.commit()
    return product_json(p), 201


@prd_bp.patch('/<int:product_id>')
@require_permissions('PRD.MANAGE')
@audit_log('PRD.UPDATE', entity='Product', entity_id_key='id',
           diff_keys=['name', 'category', 'warranty_months', 'quantity', 'retail_price'],
           pre_fetch=lambda a, kw: _prefetch_product(kw.get('product_id')))
def update(product_id: int):
    session = get_db()
    p = _load(product_id)
    update_product(session, p, request.json or {})
    session.commit()
    return product_json(p)


@prd_bp.delete('/<int:product_id>')
@require_roles(ROLE_ADMIN)
@audit_log('PRD.DELETE', entity='Product', entity_id_arg='product_id')
def delete(product_id: int):
    session = get_db()
    p = _load(product_id)
    sold = session.execute(select(func.count(SaleSerial.id)).where(SaleSerial.product_id == p.id)).scalar_one()
    if sold:
        abort(400, description='Cannot delete a product with recorded sales')
    session.delete(p)
    session.commit()
    return {'status': 'deleted'}


@prd_bp.get('/<int:product_id>/serials')
@require_permissions('PRD.READ')
def list_serials(product_id: int):
    session = get_db()
    p = _load(product_id)
    q = session.query(SaleSerial).filter(SaleSerial.product_id == p.id).order_by(SaleSerial.id.desc())
    paged_q, total, limit, offset = apply_pagination(q)
    rows = [sale_json(u) for u in paged_q.all()]
    return list_response(rows, total, limit, offset, marker=str(p.id))


@prd_bp.post('/<int:product_id>/serials')
@require_permissions('PRD.MANAGE')
@audit_log('PRD.SALE', entity='SaleSerial', entity_id_key='id', meta_keys=['serial_number', 'product_id', 'customer_id'])
def sell_unit(product_id: int):
    session = get_db()
    p = _load(product_id)
    unit = record_sale(session, p, request.json or {})
    session.commit()
    return sale_json(unit), 201


def _load(product_id: int) -> Product:
    p = get_db().execute(select(Product).where(Product.id == product_id)).scalar_one_or_none()
    if not p:
        abort(404, description='No product found with that ID')
    return p


def _prefetch_product(product_id: int):
    p = get_db().execute(select(Product).where(Product.id == product_id)).scalar_one_or_none()
    if not p:
        return {}
    return product_json(p)
