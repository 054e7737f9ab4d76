from django.urls import re_path
from . import consumers

websocket_urlpatterns = [
    re_path(r'ws/restaurants/(?P<restaurant_id>[^/]+)/$', consumers.RealtimeConsumer.as_asgi()),
    re_path(r'ws/orders/(?P<order_id>[^/]+)/$', consumers.RealtimeConsumer.as_asgi()),
]
