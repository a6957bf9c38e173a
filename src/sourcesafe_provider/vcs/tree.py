"""
SourceSafe listing parser.

ss.exe prints a recursive listing as blank-line separated sections, one per
project, with no indentation:

    $/ProjA:
    $Sub
    readme.txt
    2 item(s)

    $/ProjA/Sub:
    main.c
    1 item(s)

The lines up to the first one holding a colon name the project (long paths
wrap), lines starting with "$" are subprojects and the rest are files, apart
from the trailing item count.
Nesting is not printed, so it is rebuilt from path prefixes and the order in
which the tool emits the projects.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

ROOT_MARKER = "$"
SEPARATOR = "/"
SUMMARY_SUFFIX = " item(s)"
EMPTY_PROJECT_NOTICE = "No items found under"

_SECTION_BREAK = re.compile(r"\n[ \t]*\n")


def normalize_path(path: Optional[str]) -> str:
    """Strip trailing separators; None becomes the empty root path."""
    return (path or "").rstrip(SEPARATOR)


def node_name(path: Optional[str]) -> str:
    """Last segment of a path, or the root marker for the empty path."""
    normalized = normalize_path(path)
    if not normalized:
        return ROOT_MARKER
    return normalized.rsplit(SEPARATOR, 1)[-1]


def join_path(parent: str, name: str) -> str:
    if not parent:
        return name
    return f"{parent}{SEPARATOR}{name}"


def is_child_path(child: str, parent: str) -> bool:
    """True if child lies below parent, ignoring case."""
    child = normalize_path(child).lower()
    parent = normalize_path(parent).lower()
    if not parent:
        return bool(child)
    return child.startswith(parent + SEPARATOR)


@dataclass(frozen=True)
class FileEntry:
    """A file reported in a listing."""

    display_name: str
    full_path: str


@dataclass(eq=False)
class Node:
    """One project while a listing is being parsed."""

    path: str
    files: List[FileEntry] = field(default_factory=list)

    def __post_init__(self):
        self.path = normalize_path(self.path)

    @property
    def name(self) -> str:
        return node_name(self.path)

    def is_child_of(self, possible_parent: "Node") -> bool:
        return is_child_path(self.path, possible_parent.path)


@dataclass(frozen=True)
class DirectoryTree:
    """A project with its subprojects and the files directly inside it."""

    path: str
    subdirectories: Tuple["DirectoryTree", ...] = ()
    files: Tuple[FileEntry, ...] = ()

    @property
    def name(self) -> str:
        return node_name(self.path)

    def walk(self) -> Iterator["DirectoryTree"]:
        """Yield this tree and every subdirectory, depth-first."""
        stack = [self]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.subdirectories))

    def find(self, path: str) -> Optional["DirectoryTree"]:
        """Return the directory with the given path (case-insensitive), if any."""
        wanted = normalize_path(path).lower()
        for directory in self.walk():
            if directory.path.lower() == wanted:
                return directory
        return None


def root_tree() -> DirectoryTree:
    """Tree shown when no path is requested: the database root as one folder."""
    return DirectoryTree(path="", subdirectories=(DirectoryTree(path=ROOT_MARKER),))


def split_sections(raw_text: str) -> List[str]:
    text = raw_text.replace("\r\n", "\n").replace("\r", "\n")
    return [section.strip("\n") for section in _SECTION_BREAK.split(text) if section.strip()]


def parse_section(section: str) -> Optional[Tuple[Node, List[str], List[str]]]:
    """Parse one section of a listing.

    ss.exe wraps long project paths over several lines, so every line up to
    and including the first one holding a colon makes up the header.

    Returns:
        (node, subproject names, file names), or None if the section has no header
    """
    header: Optional[Node] = None
    header_parts: List[str] = []
    subdirectories: List[str] = []
    files: List[str] = []

    for line in section.split("\n"):
        line = line.rstrip()
        if not line:
            continue

        if header is None:
            if ":" in line:
                header_parts.append(line.split(":", 1)[0].strip())
                header = Node("".join(header_parts))
            else:
                header_parts.append(line.strip())
            continue

        if line.startswith(ROOT_MARKER):
            subdirectories.append(line[len(ROOT_MARKER):])
        elif not line.endswith(SUMMARY_SUFFIX) and not line.startswith(EMPTY_PROJECT_NOTICE):
            files.append(line)

    if header is None:
        return None
    if len(header_parts) > 1:
        logger.debug(f"Joined listing header wrapped over {len(header_parts)} lines: {header.path!r}")
    return header, subdirectories, files


def collect_nodes(raw_text: str) -> List[Node]:
    """Parse a listing into its projects, ordered depth-first.

    Subprojects named in a section are placed right after their parent, in
    listing order. A later section for the same path fills in that node rather
    than adding a new one.
    """
    top_level: List[Node] = []
    known: Dict[str, Node] = {}
    children: Dict[str, List[Node]] = {}

    for section in split_sections(raw_text):
        parsed = parse_section(section)
        if parsed is None:
            logger.debug("Skipping listing section without a header")
            continue
        header, subdirectory_names, file_names = parsed

        node = known.get(header.path.lower())
        if node is None:
            node = header
            known[node.path.lower()] = node
            top_level.append(node)

        node.files.extend(
            FileEntry(display_name=name, full_path=join_path(node.path, name))
            for name in file_names
        )

        siblings = children.setdefault(node.path.lower(), [])
        for name in subdirectory_names:
            child = Node(join_path(node.path, name))
            key = child.path.lower()
            if key in known:
                continue
            known[key] = child
            siblings.append(child)

    ordered: List[Node] = []
    stack = list(reversed(top_level))
    while stack:
        node = stack.pop()
        ordered.append(node)
        stack.extend(reversed(children.get(node.path.lower(), [])))
    return ordered


def assemble_tree(nodes: Sequence[Node]) -> DirectoryTree:
    """Rebuild nesting from a depth-first ordered sequence of projects.

    A cursor walks the sequence while a stack holds the open ancestors; each
    node is attached to the nearest ancestor it is a path-prefix child of. The
    first node is the root and assembly stops at the first node outside it.

    Raises:
        ValueError: If nodes is empty
    """
    if not nodes:
        raise ValueError("At least one node is required to assemble a tree")

    children: List[List[int]] = [[] for _ in nodes]
    stack = [0]
    consumed = len(nodes)

    for cursor in range(1, len(nodes)):
        while stack and not nodes[cursor].is_child_of(nodes[stack[-1]]):
            stack.pop()
        if not stack:
            consumed = cursor
            logger.debug(
                f"{len(nodes) - cursor} listed project(s) fall outside {nodes[0].path!r}; ignoring them"
            )
            break
        children[stack[-1]].append(cursor)
        stack.append(cursor)

    # Children always follow their parent, so building back to front sees every
    # subtree complete before its parent needs it.
    built: Dict[int, DirectoryTree] = {}
    for index in reversed(range(consumed)):
        built[index] = DirectoryTree(
            path=nodes[index].path,
            subdirectories=tuple(built.pop(child) for child in children[index]),
            files=tuple(nodes[index].files),
        )
    return built[0]


def parse_listing(raw_text: str, requested_path: Optional[str]) -> DirectoryTree:
    """Turn the output of a recursive Dir into a directory tree.

    Args:
        raw_text: stdout of ss.exe Dir -R -F
        requested_path: The path that was listed

    Returns:
        DirectoryTree rooted at the listed project
    """
    if not requested_path:
        return root_tree()

    nodes = collect_nodes(raw_text)
    if not nodes:
        logger.debug(f"No projects found in listing for {requested_path!r}")
        return DirectoryTree(path=normalize_path(requested_path))

    return assemble_tree(nodes)
