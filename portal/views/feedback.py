from rest_framework import status
from rest_framework.decorators import api_view, throttle_classes
from rest_framework.response import Response

from ..serializers.feedback import AssistantQuerySerializer, FeedbackSerializer
from ..services.assistant import ask_assistant
from ..services.feedback import submit_feedback
from ..throttling import CommentRateThrottle


@api_view(['POST'])
@throttle_classes([CommentRateThrottle])
def feedback(request):
    s = FeedbackSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    fb = submit_feedback(**s.validated_data)
    return Response({'ok': True, 'id': fb.id}, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@throttle_classes([CommentRateThrottle])
def assistant(request):
    """Forward a question to the pharmacist assistant and return its answer."""
    s = AssistantQuerySerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response({'ok': True, 'response': ask_assistant(s.validated_data['query'])})
