from django.conf import settings
from django.conf.urls.static import static
from django.urls import include, path

from auctions.urls import api_urlpatterns, site_urlpatterns

urlpatterns = [
    path("api/", include(api_urlpatterns)),
    path("", include(site_urlpatterns)),
] + static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
