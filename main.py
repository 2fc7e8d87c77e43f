import sys
import os
import json
import logging
import argparse

# Inject the credibility-engine directory into sys.path
# This ensures all sub-packages (crawler, extraction, detection, blog, scoring) are resolvable.
sys.path.append(os.path.join(os.path.dirname(__file__), "credibility-engine"))

from crawler.core import BLOG_POST_LIMIT, configure_logging, setup_logger
from crawler.engine import CredibilityAnalyzer
from crawler.errors import AnalysisError
from crawler.models import OutcomeStatus
from detection.patterns import PatternDataError

logger = setup_logger("crawler.cli")


def build_parser():
    parser = argparse.ArgumentParser(description="Content credibility (E-E-A-T) analyzer")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument("--summary", action="store_true", help="Print a result table to stderr")

    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Score one or more pages")
    analyze.add_argument("urls", nargs="+", help="Page URLs (batch when more than one)")

    blog = sub.add_parser("blog", help="Score a blog from a sample of its posts")
    blog.add_argument("root", nargs="?", help="Blog root or domain; posts are discovered from its sitemaps")
    blog.add_argument("--posts", nargs="+", help="Explicit post URLs instead of sitemap discovery")
    blog.add_argument("--limit", type=int, default=BLOG_POST_LIMIT, help="Maximum posts to sample")
    return parser


def run_analyze(analyzer, args):
    if len(args.urls) == 1:
        outcome = analyzer.analyze_url(args.urls[0])
        print(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False, default=str))
        return 0 if outcome.status is OutcomeStatus.OK else 1

    outcomes = analyzer.analyze_batch(args.urls)
    print(json.dumps([o.to_dict() for o in outcomes], indent=2, ensure_ascii=False, default=str))
    return 0 if any(o.status is OutcomeStatus.OK for o in outcomes) else 1


def run_blog(analyzer, args):
    if not args.root and not args.posts:
        raise AnalysisError("blog needs a root domain or --posts")
    result = analyzer.analyze_blog(root=args.root, urls=args.posts, limit=args.limit)
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False, default=str))
    return 0 if result.sample_url else 1


def main(argv=None):
    args = build_parser().parse_args(argv)
    configure_logging(level=logging.DEBUG if args.verbose else None, log_file=args.log_file)

    try:
        analyzer = CredibilityAnalyzer()
        if args.command == "analyze":
            code = run_analyze(analyzer, args)
        else:
            code = run_blog(analyzer, args)
    except (AnalysisError, PatternDataError, ValueError) as e:
        logger.error(str(e), extra={'context': 'cli'})
        return 2

    if args.summary:
        print(analyzer.metrics.format_summary(), file=sys.stderr)
    return code


if __name__ == "__main__":
    sys.exit(main())
