from cdc_fanout.filters.base import MissingColumnPolicy, evaluate
from cdc_fanout.models.change import Change
from cdc_fanout.models.consumer import Consumer


class ConsumerMatcher:
    """
    Decides whether a change satisfies a consumer's subscription.

    A consumer matches when it subscribes to the change's table and every
    column filter on that subscription passes. Matching is pure: the only
    state held here is the policy for columns absent from a change.
    """

    def __init__(
        self, missing_column_policy: MissingColumnPolicy = MissingColumnPolicy.FAIL
    ) -> None:
        self.missing_column_policy = missing_column_policy

    def matches(self, consumer: Consumer, change: Change) -> bool:
        source_table = consumer.source_table_for(change.table_oid)
        if source_table is None:
            return False

        return all(
            evaluate(column_filter, change.fields, self.missing_column_policy)
            for column_filter in source_table.column_filters
        )
