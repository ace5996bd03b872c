"""Sample catalogs with canned plan snapshots for demonstrations and testing."""

from .registry import InMemoryCatalog
from .snapshot import EntryType


class SampleCatalog(InMemoryCatalog):
    """Catalog pre-populated with one of the sample scenarios."""

    SCENARIOS = (
        "group_by_view",
        "cached_plan",
        "cached_view_reuse",
        "permanent_views",
        "union_join",
    )

    def __init__(self, scenario: str = "group_by_view"):
        """Initialize with the plans of ``scenario``."""
        super().__init__()
        if scenario not in self.SCENARIOS:
            raise ValueError(f"Unknown sample scenario '{scenario}'. Available: {', '.join(self.SCENARIOS)}")
        self.scenario = scenario
        getattr(self, f"_initialize_{scenario}")()

    def _initialize_group_by_view(self):
        """CREATE TEMPORARY VIEW t AS SELECT k, sum(v) FROM VALUES (1, 2), (3, 4) t(k, v) GROUP BY k"""
        self.add_node(0, "LocalRelation", ["k", "v"])
        self.add_node(1, "Aggregate", ["k", "sum(v)"], children=[0],
                      expressions=["k", "sum(v)"], grouping=["k"])
        self.add_node(2, "View", ["k", "sum(v)"], children=[1])
        self.register(2, "t", EntryType.TEMP_VIEW)

    def _initialize_cached_plan(self):
        # range(1).selectExpr("id as k", "id as v").groupBy("k").count().cache()
        self.add_node(0, "Range", ["id"])
        self.add_node(1, "Project", ["k"], children=[0], expressions=["id AS k"])
        self.add_node(2, "Aggregate", ["k", "count"], children=[1],
                      expressions=["k", "count(1) AS count"], grouping=["k"], cached=True)
        self.register(2, entry_type=EntryType.CACHED)

        # .where("count > 2").selectExpr("k", "rand() as v") registered as view v
        self.add_node(3, "Filter", ["k", "count"], children=[2])
        self.add_node(4, "Project", ["k", "v"], children=[3], expressions=["k", "rand() AS v"])
        self.add_node(5, "View", ["k", "v"], children=[4])
        self.register(5, "v", EntryType.TEMP_VIEW)

    def _initialize_cached_view_reuse(self):
        # cached aggregate registered as t1
        self.add_node(0, "Range", ["id"])
        self.add_node(1, "Project", ["k"], children=[0], expressions=["id AS k"])
        self.add_node(2, "Aggregate", ["k", "count"], children=[1],
                      expressions=["k", "count(1) AS count"], grouping=["k"])
        self.add_node(5, "View", ["k", "count"], children=[2], cached=True)
        self.register(5, "t1", EntryType.TEMP_VIEW)

        # t2 reads the very same t1 plan object
        self.add_node(3, "Filter", ["k", "count"], children=[5])
        self.add_node(4, "Project", ["k", "v"], children=[3], expressions=["k", "rand() AS v"])
        self.add_node(6, "View", ["k", "v"], children=[4])
        self.register(6, "t2", EntryType.TEMP_VIEW)

    def _initialize_permanent_views(self):
        self.add_node(0, "LocalRelation", ["k", "v"])
        self.add_node(1, "Aggregate", ["k", "sum"], children=[0],
                      expressions=["k", "SUM(v) AS sum"], grouping=["k"])
        self.add_node(5, "View", ["k", "sum"], children=[1])
        self.register(5, "default.t1", EntryType.VIEW)

        self.add_node(2, "Project", ["k", "sum", "v2"], children=[5],
                      expressions=["k", "sum", "rand() AS v2"])
        self.add_node(6, "View", ["k", "sum", "v2"], children=[2])
        self.register(6, "default.t2", EntryType.VIEW)

        self.add_node(3, "Filter", ["k", "sum", "v2"], children=[6])
        self.add_node(4, "Project", ["k"], children=[3], expressions=["k"])
        self.add_node(7, "View", ["k"], children=[4])
        self.register(7, "default.t3", EntryType.VIEW)

    def _initialize_union_join(self):
        self.add_node(0, "LocalRelation", ["order_id", "customer_id", "amount"])
        self.add_node(1, "LocalRelation", ["customer_id", "name"])
        self.add_node(2, "Join", ["order_id", "customer_id", "amount", "customer_id", "name"],
                      children=[0, 1])
        self.add_node(3, "Project", ["name", "total"], children=[2],
                      expressions=["name", "amount * 1.1 AS total"])
        self.add_node(4, "View", ["name", "total"], children=[3])
        self.register(4, "default.customer_orders", EntryType.VIEW)

        self.add_node(5, "LocalRelation", ["name", "total"])
        self.add_node(6, "Union", ["name", "total"], children=[3, 5])
        self.add_node(7, "View", ["name", "total"], children=[6])
        self.register(7, "all_orders", EntryType.TEMP_VIEW)
