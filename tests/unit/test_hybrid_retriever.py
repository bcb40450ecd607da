"""Unit tests for Reciprocal Rank Fusion and per-source hybrid search."""

import itertools
import random
import time

import pytest
from conftest import RecordingSource, make_document

from ops_assistant.core.domain import RetrievalQuery, SourceKind
from ops_assistant.core.services.hybrid_retriever import HybridRetriever, reciprocal_rank_fusion

pytestmark = pytest.mark.unit


def query_for(text, embedding=None, expanded=None, sub_queries=()):
    return RetrievalQuery(
        text=text,
        expanded=expanded or text,
        sub_queries=tuple(sub_queries),
        embedding=tuple(embedding) if embedding else None,
    )


class TestReciprocalRankFusion:
    def test_scores_follow_formula(self):
        fused = dict(reciprocal_rank_fusion(["a", "b"], ["a", "c"], k=60))
        assert fused["a"] == pytest.approx(1 / 61 + 1 / 61)
        assert fused["b"] == pytest.approx(1 / 62)
        assert fused["c"] == pytest.approx(1 / 62)

    def test_tie_broken_by_keyword_rank(self):
        fused = reciprocal_rank_fusion(["a", "b"], ["a", "c"], k=60)
        assert [doc_id for doc_id, _ in fused] == ["a", "b", "c"]

    def test_keyword_ranked_document_wins_a_tie_against_semantic_only(self):
        fused = reciprocal_rank_fusion(["q"], ["y", "x"], k=1)
        assert [doc_id for doc_id, _ in fused] == ["q", "y", "x"]

    def test_semantic_only_ranking_keeps_order(self):
        fused = reciprocal_rank_fusion([], ["z", "y"], k=60)
        assert [doc_id for doc_id, _ in fused] == ["z", "y"]

    def test_empty_rankings(self):
        assert reciprocal_rank_fusion([], []) == []

    def test_first_in_both_rankings_is_never_beaten(self):
        rng = random.Random(3)
        ids = [f"doc{i}" for i in range(12)]
        for _ in range(50):
            keyword = ids[:]
            semantic = ids[:]
            rng.shuffle(keyword)
            rng.shuffle(semantic)
            top = keyword[0]
            semantic.remove(top)
            semantic.insert(0, top)

            fused = dict(reciprocal_rank_fusion(keyword, semantic))
            assert all(fused[top] >= score for score in fused.values())

    def test_dominating_document_scores_higher(self):
        ids = ["a", "b", "c", "d"]
        for keyword in itertools.permutations(ids):
            semantic = list(keyword)
            fused = dict(reciprocal_rank_fusion(list(keyword), semantic))
            for better, worse in zip(keyword, keyword[1:]):
                assert fused[better] >= fused[worse]


class TestKeywordRanking:
    def test_phrase_matches_rank_first(self):
        docs = [
            make_document("terms", content="zscaler client and remote access notes"),
            make_document("phrase", content="How to fix zscaler remote access today"),
        ]
        ranking = HybridRetriever().keyword_ranking(docs, query_for("zscaler remote access"))
        assert [doc.id for doc in ranking] == ["phrase", "terms"]

    def test_more_terms_rank_higher_and_ties_keep_source_order(self):
        docs = [
            make_document("one-a", content="vpn"),
            make_document("two", content="vpn outlook"),
            make_document("one-b", content="outlook"),
            make_document("none", content="printer"),
        ]
        ranking = HybridRetriever().keyword_ranking(docs, query_for("vpn y outlook roto"))
        assert [doc.id for doc in ranking] == ["two", "one-a", "one-b"]

    def test_keywords_and_accents_are_searched(self):
        docs = [make_document("tagged", title="Guía", keywords=("conexión",))]
        ranking = HybridRetriever().keyword_ranking(docs, query_for("problema de conexion"))
        assert [doc.id for doc in ranking] == ["tagged"]

    def test_expanded_terms_participate(self):
        docs = [make_document("zs", content="Zscaler onboarding")]
        query = query_for("¿Cómo me conecto desde casa?", expanded="desde casa Zscaler VPN")
        assert [doc.id for doc in HybridRetriever().keyword_ranking(docs, query)] == ["zs"]


class TestSearch:
    def test_fused_results_carry_ranks_and_similarity(self):
        docs = [
            make_document("both", content="vpn guide", embedding=(1.0, 0.0)),
            make_document("keyword", content="vpn faq", embedding=()),
            make_document("semantic", content="unrelated", embedding=(0.9, 0.1)),
        ]
        results = HybridRetriever().search(docs, query_for("vpn", embedding=[1.0, 0.0]), top_k=5)

        assert [r.document.id for r in results] == ["both", "keyword", "semantic"]
        both = results[0]
        assert both.rank == 1
        assert both.keyword_rank == 1
        assert both.semantic_rank == 1
        assert both.similarity == pytest.approx(1.0)
        assert results[1].similarity is None
        assert results[2].keyword_rank is None

    def test_without_embedding_is_keyword_only(self):
        docs = [make_document("d1", content="vpn", embedding=(1.0, 0.0))]
        results = HybridRetriever().search(docs, query_for("vpn"), top_k=5)
        assert [r.document.id for r in results] == ["d1"]
        assert results[0].similarity is None

    def test_keyword_hit_below_floor_keeps_its_similarity(self):
        docs = [make_document("far", content="vpn vacaciones", embedding=(0.0, 1.0))]
        retriever = HybridRetriever(semantic_min_similarity=0.25)

        results = retriever.search(docs, query_for("vpn", embedding=[1.0, 0.0]), top_k=5)

        assert [r.document.id for r in results] == ["far"]
        assert results[0].semantic_rank is None
        assert results[0].similarity == pytest.approx(0.0)

    def test_semantic_floor(self):
        docs = [make_document("far", content="x", embedding=(0.0, 1.0))]
        retriever = HybridRetriever(semantic_min_similarity=0.25)
        assert retriever.search(docs, query_for("zzz", embedding=[1.0, 0.0]), top_k=5) == []

    def test_top_k(self):
        docs = [make_document(f"d{i}", content="vpn") for i in range(10)]
        results = HybridRetriever().search(docs, query_for("vpn"), top_k=3)
        assert [r.rank for r in results] == [1, 2, 3]

    def test_zero_top_k_and_empty_source(self):
        retriever = HybridRetriever()
        assert retriever.search([make_document("d", content="vpn")], query_for("vpn"), top_k=0) == []
        assert retriever.search([], query_for("vpn"), top_k=5) == []


class TestSourceFanOut:
    @pytest.mark.asyncio
    async def test_failing_source_yields_no_results(self):
        source = RecordingSource(SourceKind.WIKI, error=RuntimeError("store down"))
        results = await HybridRetriever().search_source(source, query_for("vpn"), top_k=5)
        assert results == []
        assert source.calls == 1

    @pytest.mark.asyncio
    async def test_slow_source_times_out_to_no_results(self):
        source = RecordingSource(
            SourceKind.WIKI, [make_document("d", content="vpn")], delay=2.0
        )
        retriever = HybridRetriever(source_timeout=0.05)
        assert await retriever.search_source(source, query_for("vpn"), top_k=5) == []

    @pytest.mark.asyncio
    async def test_sources_are_searched_concurrently(self):
        sources = [
            RecordingSource(kind, [make_document(f"{kind.value}-1", content="vpn")], delay=0.3)
            for kind in (SourceKind.WIKI, SourceKind.CONTEXT, SourceKind.KNOWLEDGE_BASE)
        ]
        start = time.perf_counter()
        results = await HybridRetriever().search_all(sources, query_for("vpn"), top_k=5)
        elapsed = time.perf_counter() - start

        assert elapsed < 0.8
        assert set(results) == {SourceKind.WIKI, SourceKind.CONTEXT, SourceKind.KNOWLEDGE_BASE}

    @pytest.mark.asyncio
    async def test_one_failure_does_not_affect_others(self):
        good = RecordingSource(SourceKind.WIKI, [make_document("w1", content="vpn")])
        bad = RecordingSource(SourceKind.CONTEXT, error=ConnectionError("boom"))

        results = await HybridRetriever().search_all([good, bad], query_for("vpn"), top_k=5)

        assert [r.document.id for r in results[SourceKind.WIKI]] == ["w1"]
        assert results[SourceKind.CONTEXT] == []

    @pytest.mark.asyncio
    async def test_same_kind_sources_are_merged_by_best_score(self):
        first = RecordingSource(
            SourceKind.WIKI,
            [make_document("shared", content="vpn"), make_document("only-first", content="vpn")],
        )
        second = RecordingSource(
            SourceKind.WIKI,
            [make_document("other", content="nothing"), make_document("shared", content="vpn")],
        )

        results = await HybridRetriever().search_all([first, second], query_for("vpn"), top_k=5)

        wiki = results[SourceKind.WIKI]
        assert [r.document.id for r in wiki].count("shared") == 1
        shared = next(r for r in wiki if r.document.id == "shared")
        assert shared.score == pytest.approx(1 / 61)
