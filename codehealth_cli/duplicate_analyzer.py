"""LLM-assisted detection of semantically duplicated code blocks across files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .discovery import find_files
from .llm import LLMClient, extract_json
from .models import CodeBlock, DuplicateFinding, SourceFile
from .parser import SourceParser
from .symbols import CLASS_NODES, FUNCTION_DECLARATIONS, FUNCTION_EXPRESSIONS, walk

logger = logging.getLogger(__name__)

MAX_BLOCKS = 50
MAX_BLOCK_CHARS = 2000
SIMILARITY_THRESHOLD = 0.75
COMPARE_MAX_TOKENS = 1500

COMPARE_PROMPT = """Compare these two code blocks for semantic similarity.

Block 1 ({file1}):
```
{code1}
```

Block 2 ({file2}):
```
{code2}
```

Provide:
1. Similarity score (0-100)
2. Are they duplicates or just similar patterns?
3. Recommendation for refactoring if duplicates

Respond in valid JSON only:
{{"similarity": <number>, "is_duplicate": <boolean>, "recommendation": "<string>"}}"""


def extract_code_blocks(source_file: SourceFile) -> List[CodeBlock]:
    """Functions, function-valued variables and classes, in document order."""
    blocks: List[CodeBlock] = []
    for node in walk(source_file.root):
        block: Optional[CodeBlock] = None
        if node.type in FUNCTION_DECLARATIONS:
            name = node.child_by_field_name("name")
            block = CodeBlock(
                file=source_file.rel_path,
                code=source_file.text(node),
                block_type="function",
                name=source_file.text(name) if name is not None else None,
            )
        elif node.type == "variable_declarator":
            value = node.child_by_field_name("value")
            name = node.child_by_field_name("name")
            if value is not None and value.type in FUNCTION_EXPRESSIONS and name is not None:
                block = CodeBlock(
                    file=source_file.rel_path,
                    code=source_file.text(node.parent),
                    block_type="function",
                    name=source_file.text(name),
                )
        elif node.type in CLASS_NODES and node.type != "class":
            name = node.child_by_field_name("name")
            block = CodeBlock(
                file=source_file.rel_path,
                code=source_file.text(node),
                block_type="class",
                name=source_file.text(name) if name is not None else None,
            )
        if block is not None:
            blocks.append(block)
    return blocks


class DuplicateAnalyzer:
    def __init__(self, llm: LLMClient, repo_path: Path):
        self.llm = llm
        self.repo_path = Path(repo_path).resolve()

    def analyze(self, files: Optional[Sequence[Path]] = None) -> List[DuplicateFinding]:
        paths = find_files(self.repo_path) if files is None else list(files)
        sources = SourceParser(self.repo_path).parse_files(paths)

        blocks: List[CodeBlock] = []
        for source_file in sources:
            blocks.extend(extract_code_blocks(source_file))
        if len(blocks) > MAX_BLOCKS:
            logger.info("Comparing the first %d of %d code blocks", MAX_BLOCKS, len(blocks))
        blocks = blocks[:MAX_BLOCKS]

        findings: List[DuplicateFinding] = []
        for i, block1 in enumerate(blocks):
            for block2 in blocks[i + 1:]:
                if block1.file == block2.file:
                    continue
                result = self.check_similarity(block1, block2)
                if result is None:
                    logger.warning("Skipped comparison %s vs %s", block1.file, block2.file)
                    continue
                score, recommendation = result
                if score > SIMILARITY_THRESHOLD:
                    findings.append(DuplicateFinding(
                        file1=block1.file,
                        file2=block2.file,
                        similarity=score,
                        code_block1=block1.code,
                        code_block2=block2.code,
                        recommendation=recommendation,
                    ))
        return findings

    def check_similarity(self, block1: CodeBlock, block2: CodeBlock) -> Optional[Tuple[float, str]]:
        """Ask the model for a 0-100 similarity score. ``None`` when the call fails."""
        prompt = COMPARE_PROMPT.format(
            file1=block1.file,
            code1=block1.code[:MAX_BLOCK_CHARS],
            file2=block2.file,
            code2=block2.code[:MAX_BLOCK_CHARS],
        )
        response = self.llm.generate(prompt, max_tokens=COMPARE_MAX_TOKENS)
        if response is None:
            return None

        parsed = extract_json(response)
        if not isinstance(parsed, dict):
            return 0.0, "Unable to analyze"
        try:
            score = float(parsed.get("similarity") or 0) / 100
        except (TypeError, ValueError):
            score = 0.0
        return score, str(parsed.get("recommendation") or "Review manually")
