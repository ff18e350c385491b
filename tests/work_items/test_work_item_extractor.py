import unittest
from unittest import mock

from devops_export.config.config import AzureConfig
from devops_export.work_items.work_item_extractor import (
    WorkItemExtractor,
    build_hierarchy_query,
    split_into_chunks,
)


def make_config(**overrides):
    values = dict(_env_file=None, pat="x", username="jane@example.com", organization="contoso", project="Fabrikam")
    values.update(overrides)
    return AzureConfig(**values)


class TestSplitIntoChunks(unittest.TestCase):

    def test_split(self):
        self.assertEqual(split_into_chunks([1, 2, 3, 4, 5], 2), [[1, 2], [3, 4], [5]])
        self.assertEqual(split_into_chunks([], 200), [])
        self.assertEqual(split_into_chunks([1, 2], 200), [[1, 2]])

    def test_result_is_reusable(self):
        chunks = split_into_chunks(list(range(5)), 3)
        self.assertEqual(list(chunks), list(chunks))

    def test_invalid_size(self):
        with self.assertRaises(ValueError):
            split_into_chunks([1], 0)


class TestBuildHierarchyQuery(unittest.TestCase):

    def test_default_query(self):
        query = build_hierarchy_query(make_config())

        self.assertTrue(query.startswith("select [System.Id], [System.WorkItemType], [System.Title] from WorkItemLinks"))
        self.assertIn("Source.[System.WorkItemType] in ('User Story', 'Bug', 'Task')", query)
        self.assertIn("[System.Links.LinkType] = 'System.LinkTypes.Hierarchy-Forward'", query)
        self.assertIn("Target.[Microsoft.VSTS.Common.ClosedDate] >= '2019-01-01T00:00:00.0000000'", query)
        self.assertIn("(Target.[System.AssignedTo] = 'jane@example.com')", query)
        self.assertNotIn("System.History", query)
        self.assertTrue(query.endswith("mode (Recursive, ReturnMatchingChildren)"))

    def test_history_and_assignee(self):
        query = build_hierarchy_query(make_config(
            history_contains="O'Brien",
            assigned_to="Jane Doe <jane@example.com>",
            work_item_types=["Bug"],
        ))

        self.assertIn(
            "(Target.[System.History] contains words 'O''Brien' "
            "or Target.[System.AssignedTo] = 'Jane Doe <jane@example.com>')",
            query,
        )
        self.assertIn("Target.[System.WorkItemType] in ('Bug')", query)


class TestWorkItemExtractor(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.config = make_config()
        self.client = mock.MagicMock()
        self.client.query_work_item_links = mock.AsyncMock()
        self.client.get_work_items_batch = mock.AsyncMock(
            side_effect=lambda ids, expand="all": [{"id": i, "fields": {}} for i in ids]
        )
        self.extractor = WorkItemExtractor(self.client, self.config)

    async def test_get_work_item_relations(self):
        relations = [{"target": {"id": 1}}]
        self.client.query_work_item_links.return_value = relations

        self.assertEqual(await self.extractor.get_work_item_relations(), relations)
        self.client.query_work_item_links.assert_awaited_once_with(build_hierarchy_query(self.config))

    def test_extract_work_item_ids_deduplicates_in_order(self):
        relations = [
            {"target": {"id": 3}},
            {"source": {"id": 3}, "target": {"id": 1}},
            {"target": {"id": 1}},
            {"source": {"id": 1}, "target": {"id": 2}},
        ]
        self.assertEqual(self.extractor.extract_work_item_ids(relations), [3, 1, 2])

    async def test_450_ids_take_three_batches(self):
        ids = list(range(1, 451))

        work_items = await self.extractor.extract_work_items_batch(ids)

        batch_sizes = [len(call.args[0]) for call in self.client.get_work_items_batch.await_args_list]
        self.assertEqual(batch_sizes, [200, 200, 50])
        for call in self.client.get_work_items_batch.await_args_list:
            self.assertEqual(call.kwargs, {"expand": "all"})
        fetched_ids = [item["id"] for item in work_items]
        self.assertEqual(len(fetched_ids), 450)
        self.assertEqual(set(fetched_ids), set(ids))

    async def test_no_ids_no_requests(self):
        self.assertEqual(await self.extractor.extract_work_items_batch([]), [])
        self.client.get_work_items_batch.assert_not_awaited()


if __name__ == '__main__':
    unittest.main()
