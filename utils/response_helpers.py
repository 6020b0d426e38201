"""
Response helper utilities for handling UUID conversions and model validation
"""
from typing import Any, Dict, List, Optional
import uuid
from fastapi import HTTPException, status
from pydantic import BaseModel
from sqlalchemy import inspect


def convert_uuids_to_strings(obj: Any) -> Any:
    """
    Recursively convert UUID objects to strings in any data structure
    """
    if isinstance(obj, uuid.UUID):
        return str(obj)
    elif isinstance(obj, dict):
        return {key: convert_uuids_to_strings(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [convert_uuids_to_strings(item) for item in obj]
    elif hasattr(obj, '__table__'):
        # SQLAlchemy models: only loaded column attributes
        result = {}
        for key, value in obj.__dict__.items():
            if not key.startswith('_'):
                result[key] = convert_uuids_to_strings(value)
        return result
    else:
        return obj


def safe_model_validate(model_class: BaseModel, data: Any) -> BaseModel:
    """
    Safely validate a model by converting UUIDs to strings first
    """
    if hasattr(data, '__table__'):
        data = data.__dict__.copy()

    clean_data = convert_uuids_to_strings(data)

    if isinstance(clean_data, dict):
        clean_data = {k: v for k, v in clean_data.items() if not k.startswith('_')}

    return model_class.model_validate(clean_data)


def safe_model_validate_list(model_class: BaseModel, data_list: List[Any]) -> List[BaseModel]:
    """
    Safely validate a list of models by converting UUIDs to strings first
    """
    return [safe_model_validate(model_class, item) for item in data_list]


def parse_uuid(value: str, label: str = "resource") -> uuid.UUID:
    """Parse a path/body id, raising 400 on malformed input"""
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label} ID format"
        )


def loaded_relationship(instance, name: str) -> Optional[Any]:
    """Related object if already loaded, None instead of triggering a lazy load"""
    if name in inspect(instance).unloaded:
        return None
    return getattr(instance, name)


def user_to_dict(user) -> Dict[str, Any]:
    """Convert User model to dict; the password hash is never included"""
    data = {
        'id': str(user.id),
        'username': user.username,
        'email': user.email,
        'role': user.role,
        'address': user.address,
        'city': user.city,
        'country': user.country,
        'created_at': user.created_at,
        'updated_at': user.updated_at,
    }
    if user.role == "buyer":
        data['postal_code'] = user.postal_code
    if user.role == "supplier":
        data['company'] = user.company
        data['phone'] = user.phone
    return data


def admin_to_dict(admin) -> Dict[str, Any]:
    """Convert Admin model to dict without the password hash"""
    return {
        'id': str(admin.id),
        'username': admin.username,
        'email': admin.email,
        'role': admin.role,
        'status': admin.status,
        'created_at': admin.created_at,
    }


def stock_to_dict(stock) -> Dict[str, Any]:
    """Convert Stock model to dict with string UUIDs"""
    return {
        'id': str(stock.id),
        'name': stock.name,
        'category': stock.category,
        'quantity': stock.quantity,
        'reorder_level': stock.reorder_level,
        'unit_price': stock.unit_price,
        'supplier_id': str(stock.supplier_id) if stock.supplier_id else None,
        'date_added': stock.date_added,
        'updated_at': stock.updated_at,
    }


def product_to_dict(product, stock: Optional[Any] = None) -> Dict[str, Any]:
    """Convert Product model to dict with its embedded stock summary"""
    stock = stock if stock is not None else product.stock
    return {
        'id': str(product.id),
        'stock': {
            'id': str(stock.id),
            'name': stock.name,
            'quantity': stock.quantity,
            'category': stock.category,
        } if stock is not None else None,
        'name': stock.name if stock is not None else None,
        'category': product.category,
        'description': product.description,
        'price': product.price,
        'image': product.image,
        'created_at': product.created_at,
        'updated_at': product.updated_at,
    }


def offer_to_dict(offer) -> Dict[str, Any]:
    """Convert SupplierOffer model to dict, with the supplier name when it is already loaded"""
    supplier = loaded_relationship(offer, 'supplier')
    return {
        'id': str(offer.id),
        'supplier_id': str(offer.supplier_id),
        'supplier_name': supplier.username if supplier is not None else None,
        'title': offer.title,
        'description': offer.description,
        'price_per_unit': offer.price_per_unit,
        'quantity_offered': offer.quantity_offered,
        'delivery_date': offer.delivery_date,
        'status': offer.status,
        'decision_by': str(offer.decision_by) if offer.decision_by else None,
        'decision_at': offer.decision_at,
        'created_at': offer.created_at,
        'updated_at': offer.updated_at,
    }
