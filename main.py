"""Command-line entry points for the topic-aware RAG pipeline."""

from __future__ import annotations

import argparse

from topic_rag import logger
from topic_rag.config import PipelineConfig
from topic_rag.ingestion import load_text
from topic_rag.pipeline import RAGPipeline


def _load_config(config_path: str | None, env_file: str | None) -> PipelineConfig:
    if config_path:
        return PipelineConfig.from_json(config_path)
    return PipelineConfig.from_env(env_file)


def run_query(pipeline: RAGPipeline, source_file: str, question: str) -> None:
    source_text = load_text(source_file)
    result = pipeline.process_query(source_text, question)
    print(f"Category: {result.category}")
    print("Answer:")
    print(result.answer)


def run_classify(pipeline: RAGPipeline, question: str) -> None:
    label = pipeline.classifier.classify(question, pipeline.prompts.classification)
    print(label)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Topic-aware RAG pipeline")
    parser.add_argument("command", choices={"query", "classify"}, help="Action to run")
    parser.add_argument("source", nargs="?", help="Reference document to answer from (.txt, .md, .pdf, .docx)")
    parser.add_argument("--question", help="Question to ask")
    parser.add_argument("--config", help="Path to a JSON file with the pipeline configuration")
    parser.add_argument("--env-file", help="Path to a .env file (defaults to ./.env)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_arguments(argv)
    if args.log_level:
        logger.set_level(args.log_level)

    if not args.question:
        raise SystemExit("You must provide a question with --question.")
    if args.command == "query" and not args.source:
        raise SystemExit("You must provide a source document to answer from.")

    config = _load_config(args.config, args.env_file)
    pipeline = RAGPipeline(config=config)

    if args.command == "query":
        run_query(pipeline, args.source, args.question)
    elif args.command == "classify":
        run_classify(pipeline, args.question)


if __name__ == "__main__":
    main()
