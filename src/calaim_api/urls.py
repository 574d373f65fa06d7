from django.contrib import admin
from django.http import HttpResponse
from django.urls import include, path
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest


def metrics_view(request):
    return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)


urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/',     include('plugins.django_interface.urls')),
    path('metrics/', metrics_view, name='metrics'),
]
