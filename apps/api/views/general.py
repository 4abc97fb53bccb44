from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny

from apps.utils import meals
from ..responses import success_response


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def active_meal(request):
    """Meal currently being served, or null between meals"""
    return success_response({'mealType': meals.get_active_meal_type()})
