import pytest
import pytest_asyncio

from conftest import OTHER_OWNER_ID, OWNER_ID, SCENARIO_EXTRACTION, SCENARIO_TEXT, USER_KEY, chat_completion, json_transport
from insightmap.core.exceptions import InvalidInput
from insightmap.database.models import Idea
from insightmap.schemas.insights import InsightsQuery, InsightView
from insightmap.services.insights_service import InsightsService, resolve_view


@pytest_asyncio.fixture
async def ingested(make_orchestrator, session_factory):
    """One analyzed submission for OWNER_ID plus an idea for each owner."""
    orchestrator = make_orchestrator(json_transport(chat_completion(SCENARIO_EXTRACTION)))
    result = await orchestrator.execute(
        SCENARIO_TEXT, OWNER_ID, source_metadata={"type": "api", "campaign": "beta"}, credential=USER_KEY
    )
    async with session_factory() as session:
        session.add_all([
            Idea(user_id=OWNER_ID, text="Fix login", type="feature"),
            Idea(user_id=OWNER_ID, text="Old idea", status="discarded"),
            Idea(user_id=OTHER_OWNER_ID, text="Not yours"),
        ])
        await session.commit()
    return result


async def render(session_factory, owner, **params):
    async with session_factory() as session:
        return await InsightsService(session).execute(owner, InsightsQuery(**params))


class TestResolveView:

    def test_alias(self):
        assert resolve_view("ideas") is InsightView.LIST_IDEAS

    @pytest.mark.parametrize("view", [None, "", "everything"])
    def test_invalid(self, view):
        with pytest.raises(InvalidInput):
            resolve_view(view)


class TestInsightsService:

    @pytest.mark.asyncio
    async def test_list_quotes_includes_provenance(self, session_factory, ingested):
        result = await render(session_factory, OWNER_ID, view="list_quotes")

        assert result["debug"]["view"] == "list_quotes"
        assert result["debug"]["target"] == "quotes"
        assert isinstance(result["debug"]["elapsed_ms"], int)
        [quote] = result["data"]
        assert quote["text"] == "app crashes on login"
        assert quote["raw_data"]["id"] == str(ingested.raw_content_id)
        assert quote["raw_data"]["source"]["type"] == "api"
        assert quote["raw_data"]["source"]["metadata"]["campaign"] == "beta"

    @pytest.mark.asyncio
    async def test_list_quotes_filters(self, session_factory, ingested):
        by_source = await render(session_factory, OWNER_ID, view="list_quotes", source_id=ingested.source_id)
        other_raw = await render(session_factory, OWNER_ID, view="list_quotes", raw_content_id=OTHER_OWNER_ID)

        assert len(by_source["data"]) == 1
        assert other_raw["data"] == []

    @pytest.mark.asyncio
    async def test_list_nodes_type_filter(self, session_factory, ingested):
        pains = await render(session_factory, OWNER_ID, view="list_nodes", type="pain")
        themes = await render(session_factory, OWNER_ID, view="list_nodes", type="theme")

        assert [n["label"] for n in pains["data"]] == ["Login crash"]
        assert themes["data"] == []

    @pytest.mark.asyncio
    async def test_graph_data_nests_links(self, session_factory, ingested):
        result = await render(session_factory, OWNER_ID, view_type="graph_data")

        assert result["debug"]["target"] == "graph"
        [node] = result["data"]
        assert node["edges"] == []
        [link] = node["quote_node_links"]
        assert link["type"] == "supports"
        assert link["quote"]["text"] == "app crashes on login"

    @pytest.mark.asyncio
    async def test_list_ideas_status_filter_and_alias(self, session_factory, ingested):
        all_ideas = await render(session_factory, OWNER_ID, view="ideas")
        discarded = await render(session_factory, OWNER_ID, view="list_ideas", status="discarded")

        assert {i["text"] for i in all_ideas["data"]} == {"Fix login", "Old idea"}
        assert [i["text"] for i in discarded["data"]] == ["Old idea"]
        assert all_ideas["debug"]["view"] == "list_ideas"

    @pytest.mark.asyncio
    async def test_other_owner_sees_nothing(self, session_factory, ingested):
        quotes = await render(session_factory, OTHER_OWNER_ID, view="list_quotes")
        graph = await render(session_factory, OTHER_OWNER_ID, view="graph_data")
        ideas = await render(session_factory, OTHER_OWNER_ID, view="list_ideas")

        assert quotes["data"] == []
        assert graph["data"] == []
        assert [i["text"] for i in ideas["data"]] == ["Not yours"]

    @pytest.mark.asyncio
    async def test_pagination(self, session_factory, ingested):
        first = await render(session_factory, OWNER_ID, view="list_ideas", limit=1)
        second = await render(session_factory, OWNER_ID, view="list_ideas", limit=1, offset=1)

        assert len(first["data"]) == 1
        assert len(second["data"]) == 1
        assert first["data"][0]["id"] != second["data"][0]["id"]

    @pytest.mark.asyncio
    async def test_invalid_view(self, session_factory):
        with pytest.raises(InvalidInput):
            await render(session_factory, OWNER_ID, view="dashboard")
