"""
API Views for the Smart Task Analyzer.

This module exposes the prioritization engine over HTTP. Views validate the
request envelope, delegate ranking to ``scoring.rank`` and serialize the
results; the engine itself never sees malformed envelopes.
"""

import logging

from django.utils import timezone
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, throttle_classes
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle

from .conf import get_setting
from .scoring import (
    ErrorCode,
    STRATEGY_DESCRIPTIONS,
    rank,
    result_to_dict
)
from .serializers import (
    TaskBatchSerializer,
    TaskResultSerializer,
    TaskSuggestSerializer
)


logger = logging.getLogger(__name__)


# ============================================
# RATE LIMITING CLASSES
# ============================================

class AnalyzeRateThrottle(AnonRateThrottle):
    """Rate limit for analyze endpoint - 30 requests per minute."""
    rate = '30/min'


class SuggestRateThrottle(AnonRateThrottle):
    """Rate limit for suggest endpoint - 30 requests per minute."""
    rate = '30/min'


# ============================================
# HELPERS
# ============================================

def _error_response(serializer) -> Response:
    errors = serializer.errors
    if 'strategy' in errors:
        code = ErrorCode.ERR_INVALID_STRATEGY
        message = f"Invalid strategy. Valid options: {list(STRATEGY_DESCRIPTIONS)}"
    elif 'count' in errors:
        code = ErrorCode.ERR_INVALID_COUNT
        message = 'Count must be a positive integer.'
    else:
        code = ErrorCode.ERR_INVALID_PAYLOAD
        message = 'Input must be a JSON array of task objects.'

    logger.info("Rejected ranking request (%s): %s", code.value, errors)
    return Response(
        {
            'success': False,
            'error_code': code.value,
            'errors': errors,
            'message': message
        },
        status=status.HTTP_400_BAD_REQUEST
    )


def _rank_validated(validated_data):
    strategy = validated_data.get('strategy') or get_setting('DEFAULT_STRATEGY')
    today = validated_data.get('today') or timezone.localdate()
    results = rank(validated_data['tasks'], strategy=strategy, today=today)
    return strategy, today, results


def _serialize_results(results):
    high = get_setting('HIGH_PRIORITY_THRESHOLD')
    medium = get_setting('MEDIUM_PRIORITY_THRESHOLD')
    return [result_to_dict(result, high, medium) for result in results]


def _batch_cycles(results):
    return [list(cycle) for cycle in results[0].cycles] if results else []


# ============================================
# API ENDPOINTS
# ============================================

@extend_schema(
    summary="Analyze and prioritize tasks",
    description="""
    Rank a list of tasks by priority score, highest first.

    The body is either a JSON array of tasks or an object with `tasks`,
    an optional `strategy` and an optional reference date `today`.
    Every result carries its reason trace and the batch's cycle list.
    """,
    request={
        'application/json': {
            'type': 'object',
            'properties': {
                'tasks': {'type': 'array', 'items': {'type': 'object'}},
                'strategy': {'type': 'string', 'enum': list(STRATEGY_DESCRIPTIONS)},
                'today': {'type': 'string', 'format': 'date'},
            },
            'required': ['tasks']
        }
    },
    responses={200: TaskResultSerializer(many=True)},
    tags=['Analysis']
)
@api_view(['POST'])
@throttle_classes([AnalyzeRateThrottle])
def analyze_tasks(request: Request) -> Response:
    """
    Analyze a list of tasks and return them sorted by priority score.

    POST /api/tasks/analyze/

    Request Body:
    {
        "tasks": [...],
        "strategy": "smart",         // Optional: smart, fastest, impact, deadline
        "today": "2025-01-31"        // Optional reference date
    }
    """
    serializer = TaskBatchSerializer.from_request_data(
        request.data,
        strategy=get_setting('DEFAULT_STRATEGY')
    )
    if not serializer.is_valid():
        return _error_response(serializer)

    strategy, today, results = _rank_validated(serializer.validated_data)
    result_tasks = _serialize_results(results)
    cycles = _batch_cycles(results)

    levels = [task['priority_level'] for task in result_tasks]
    return Response({
        'success': True,
        'error_code': ErrorCode.SUCCESS.value,
        'count': len(result_tasks),
        'strategy': strategy,
        'today': today.isoformat(),
        'tasks': result_tasks,
        'cycles': cycles,
        'summary': {
            'total_tasks': len(result_tasks),
            'high_priority_count': levels.count('High'),
            'medium_priority_count': levels.count('Medium'),
            'low_priority_count': levels.count('Low'),
            'cycles_detected': bool(cycles)
        }
    })


@extend_schema(
    summary="Get task suggestions",
    description="Return the top ranked tasks to work on next.",
    request={
        'application/json': {
            'type': 'object',
            'properties': {
                'tasks': {'type': 'array', 'items': {'type': 'object'}},
                'strategy': {'type': 'string', 'enum': list(STRATEGY_DESCRIPTIONS)},
                'today': {'type': 'string', 'format': 'date'},
                'count': {'type': 'integer', 'default': 3},
            },
            'required': ['tasks']
        }
    },
    responses={200: TaskResultSerializer(many=True)},
    tags=['Suggestions']
)
@api_view(['POST'])
@throttle_classes([SuggestRateThrottle])
def suggest_tasks(request: Request) -> Response:
    """
    Return the top tasks the user should work on next.

    POST /api/tasks/suggest/
    """
    serializer = TaskSuggestSerializer.from_request_data(
        request.data,
        strategy=get_setting('DEFAULT_STRATEGY'),
        count=get_setting('SUGGEST_COUNT')
    )
    if not serializer.is_valid():
        return _error_response(serializer)

    strategy, today, results = _rank_validated(serializer.validated_data)
    count = serializer.validated_data.get('count') or get_setting('SUGGEST_COUNT')
    suggested = _serialize_results(results[:count])

    return Response({
        'success': True,
        'error_code': ErrorCode.SUCCESS.value,
        'strategy_used': strategy,
        'today': today.isoformat(),
        'total_tasks': len(results),
        'suggested_tasks': suggested,
        'cycles': _batch_cycles(results)
    })


@extend_schema(
    summary="Get available strategies",
    description="Return the available ranking strategies.",
    responses={200: OpenApiTypes.OBJECT},
    tags=['Info']
)
@api_view(['GET'])
def get_strategies(request: Request) -> Response:
    """
    Return available ranking strategies.

    GET /api/tasks/strategies/
    """
    strategies = {
        name: {
            'name': name.title(),
            'description': description
        }
        for name, description in STRATEGY_DESCRIPTIONS.items()
    }
    return Response({
        'success': True,
        'strategies': strategies,
        'default': get_setting('DEFAULT_STRATEGY')
    })


@extend_schema(
    summary="API information",
    description="Get API information and available endpoints.",
    responses={200: OpenApiTypes.OBJECT},
    tags=['Info']
)
@api_view(['GET'])
def api_info(request: Request) -> Response:
    """
    Return API information and available endpoints.

    GET /api/
    """
    return Response({
        'name': 'Smart Task Analyzer API',
        'version': '3.0.0',
        'documentation': '/api/docs/',
        'features': [
            'Additive priority scoring with reason traces',
            'Dependency-aware adjustment',
            'Circular dependency detection',
            'Selectable ranking strategies',
            'Rate limiting (30 req/min)',
            'OpenAPI/Swagger documentation'
        ],
        'endpoints': {
            'POST /api/tasks/analyze/': 'Rank tasks by priority',
            'POST /api/tasks/suggest/': 'Get the top ranked tasks',
            'GET /api/tasks/strategies/': 'Get available ranking strategies',
            'GET /api/docs/': 'Interactive API documentation',
            'GET /api/schema/': 'OpenAPI schema',
            'GET /api/': 'This info endpoint'
        },
        'strategies': STRATEGY_DESCRIPTIONS,
        'error_codes': {
            code.value: code.name for code in ErrorCode
        }
    })
