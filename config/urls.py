"""URL configuration for the kennel booking project.

The `urlpatterns` list routes URLs to views. It includes the Django admin,
the public availability and reservation API, the staff capacity API and the
payment webhook.
"""
from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView


def health(request):
    return JsonResponse({'status': 'ok'})


urlpatterns = [
    path('admin/', admin.site.urls),
    path('health', health, name='health'),
    # Application URLs
    path('', include('apps.capacity.urls')),
    path('', include('apps.reservations.urls')),
    path('', include('apps.payments.urls')),
    # API docs
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]
