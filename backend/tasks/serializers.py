"""
Serializers for the task analysis API.

Task records themselves are accepted loosely: the engine normalizes every
field. These serializers only enforce the request envelope, i.e. that the
tasks form a list of objects and that the options are well-formed.
"""

from rest_framework import serializers

from .scoring import Strategy, DEFAULT_STRATEGY


STRATEGY_CHOICES = [
    (Strategy.SMART.value, 'Smart'),
    (Strategy.FASTEST.value, 'Fastest Wins'),
    (Strategy.IMPACT.value, 'High Impact'),
    (Strategy.DEADLINE.value, 'Deadline Driven'),
]


class TaskBatchSerializer(serializers.Serializer):
    """
    Serializer for a ranking request.

    Accepts either {"tasks": [...], ...} or a bare JSON array of tasks,
    see ``from_request_data``.
    """

    tasks = serializers.ListField(
        child=serializers.DictField(),
        allow_empty=True,
        error_messages={
            'not_a_list': 'Tasks must be a JSON array of task objects.'
        }
    )
    strategy = serializers.ChoiceField(
        choices=STRATEGY_CHOICES,
        default=DEFAULT_STRATEGY,
        required=False
    )
    today = serializers.DateField(required=False, allow_null=True)

    @classmethod
    def from_request_data(cls, data, **defaults):
        """Wrap a bare array payload into the object envelope."""
        if isinstance(data, list):
            data = {'tasks': data}
        elif hasattr(data, 'copy'):
            data = data.copy()
        for name, value in defaults.items():
            if isinstance(data, dict) and data.get(name) is None:
                data[name] = value
        return cls(data=data)


class TaskSuggestSerializer(TaskBatchSerializer):
    """Serializer for a suggestion request."""

    count = serializers.IntegerField(
        min_value=1,
        required=False,
        error_messages={
            'min_value': 'Count must be at least 1.'
        }
    )


class TaskResultSerializer(serializers.Serializer):
    """
    Serializer for a ranked task in API responses.

    Documents the shape produced by ``scoring.result_to_dict``.
    """

    task = serializers.DictField()
    score = serializers.IntegerField()
    priority_level = serializers.CharField()
    reason = serializers.ListField(child=serializers.CharField())
    cycles = serializers.ListField(child=serializers.ListField(child=serializers.CharField()))
