from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import DraftView, FieldValidationView, TestDriveRequestViewSet

router = DefaultRouter()
router.register(r'requests', TestDriveRequestViewSet, basename='test-drive-request')


urlpatterns = [
    path('validate/', FieldValidationView.as_view(), name='test-drive-validate'),
    path('drafts/<str:vehicle_id>/', DraftView.as_view(), name='test-drive-draft'),
    path('', include(router.urls)),
]
