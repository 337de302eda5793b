"""
URL configuration for cart app.
"""

from django.urls import path
from .views import CartViewSet

app_name = 'cart'

urlpatterns = [
    # GET /api/cart/ - Retrieve current cart
    path('', CartViewSet.as_view({'get': 'retrieve'}), name='cart-detail'),

    # POST /api/cart/items/ - Add item to cart
    path('items/', CartViewSet.as_view({'post': 'add_item'}), name='cart-add-item'),

    # PATCH / DELETE /api/cart/items/{item_id}/ - Update or remove one item
    path(
        'items/<uuid:item_id>/',
        CartViewSet.as_view({'patch': 'update_item', 'delete': 'remove_item'}),
        name='cart-item',
    ),

    # PATCH /api/cart/settings/ - Order type, delivery address, instructions
    path('settings/', CartViewSet.as_view({'patch': 'update_settings'}), name='cart-settings'),

    # DELETE /api/cart/clear/ - Clear all items
    path('clear/', CartViewSet.as_view({'delete': 'clear'}), name='cart-clear'),

    # POST /api/cart/checkout/ - Convert cart to order
    path('checkout/', CartViewSet.as_view({'post': 'checkout'}), name='cart-checkout'),
]
