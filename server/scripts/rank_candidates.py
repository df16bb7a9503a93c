
"""Rank candidates from a JSON file with the configured scoring model.

Input: ``[{"subjectId": "m1", "objectId": "p1", "paths": [[10, 5, 20]]}, ...]``
"""
import argparse, asyncio, json, sys

from kaerr.config import settings
from kaerr.errors import KaerrError
from kaerr.ranking.encoder import BatchEncoder
from kaerr.ranking.pipeline import RankingPipeline
from kaerr.ranking.providers.scoring import build_scoring_provider
from kaerr.ranking.scorer import ScoringClient
from kaerr.ranking.types import Candidate, PathSet


def load_candidates(path: str) -> list[Candidate]:
    with open(path, encoding="utf-8") as f:
        rows = json.load(f)
    return [Candidate(str(r["subjectId"]), str(r["objectId"]), PathSet.from_lists(r.get("paths") or [])) for r in rows]


def main(argv=None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("candidates_json")
    ap.add_argument("--model", default=settings.scoring_model_path)
    ap.add_argument("--provider", default=settings.scoring_provider)
    ap.add_argument("--max-paths", type=int, default=settings.max_paths)
    ap.add_argument("--max-path-len", type=int, default=settings.max_path_len)
    args = ap.parse_args(argv)

    provider, key, fallback = build_scoring_provider(args.provider, args.model, max_paths=args.max_paths, max_path_len=args.max_path_len)
    if fallback: print(f"unknown provider {fallback!r}, using {key!r}", file=sys.stderr)
    pipeline = RankingPipeline(BatchEncoder(args.max_paths, args.max_path_len), ScoringClient(provider))
    try:
        ranked = asyncio.run(pipeline.rank_candidates(load_candidates(args.candidates_json)))
    except KaerrError as e:
        print(f"error: {e}", file=sys.stderr); return 1
    print(json.dumps([r.as_dict() for r in ranked], indent=2))
    return 0


if __name__ == "__main__": raise SystemExit(main())
