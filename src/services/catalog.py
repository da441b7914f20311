import logging
import re
import threading

from models.catalog import Topic

logger = logging.getLogger(__name__)

DEFAULT_TOPICS = [
    Topic(
        id="mern-stack",
        name="MERN Stack",
        description="MongoDB, Express.js, React, Node.js full-stack development",
        subtopics=[
            "MongoDB Schema Design",
            "Express.js Middleware",
            "React Hooks & State Management",
            "Node.js Event Loop",
            "REST API Design",
            "Authentication with JWT",
            "Deployment & DevOps",
        ],
    ),
    Topic(
        id="system-design",
        name="System Design",
        description="Designing scalable, reliable, and efficient software systems",
        subtopics=[
            "Load Balancing",
            "Database Sharding",
            "Caching Strategies",
            "Microservices Architecture",
            "Message Queues",
            "CAP Theorem",
            "API Gateway Design",
        ],
    ),
    Topic(
        id="aptitude",
        name="Aptitude",
        description="Quantitative aptitude, logical reasoning, and verbal ability for placements",
        subtopics=[
            "Probability & Permutations",
            "Time & Work Problems",
            "Profit & Loss",
            "Number Series",
            "Logical Puzzles",
            "Data Interpretation",
            "Verbal Reasoning",
        ],
    ),
    Topic(
        id="data-structures",
        name="Data Structures",
        description="Core data structures used in coding interviews",
        subtopics=[
            "Arrays & Strings",
            "Linked Lists",
            "Stacks & Queues",
            "Trees & Binary Search Trees",
            "Graphs & Traversals",
            "Hash Maps",
            "Heaps & Priority Queues",
        ],
    ),
    Topic(
        id="oop",
        name="Object-Oriented Programming",
        description="OOP principles and design patterns for interviews",
        subtopics=[
            "Encapsulation & Abstraction",
            "Inheritance & Polymorphism",
            "SOLID Principles",
            "Design Patterns (Singleton, Factory, Observer)",
            "UML Diagrams",
            "Composition vs Inheritance",
        ],
    ),
    Topic(
        id="dbms",
        name="Database Management Systems",
        description="Relational databases, SQL, normalization, and transactions",
        subtopics=[
            "ER Diagrams",
            "Normalization (1NF-BCNF)",
            "SQL Queries & Joins",
            "Transactions & ACID",
            "Indexing & Optimization",
            "NoSQL vs SQL",
        ],
    ),
    Topic(
        id="os",
        name="Operating Systems",
        description="OS concepts frequently asked in placement interviews",
        subtopics=[
            "Process Scheduling",
            "Memory Management",
            "Deadlocks",
            "Virtual Memory & Paging",
            "File Systems",
            "Threads & Concurrency",
        ],
    ),
    Topic(
        id="cn",
        name="Computer Networks",
        description="Networking fundamentals and protocols for placements",
        subtopics=[
            "OSI & TCP/IP Models",
            "HTTP/HTTPS Protocol",
            "DNS & DHCP",
            "Subnetting & IP Addressing",
            "TCP vs UDP",
            "Network Security Basics",
        ],
    ),
    Topic(
        id="ml",
        name="Machine Learning & AI",
        description="Machine learning algorithms, AI concepts, and data science for placements",
        subtopics=[
            "Decision Trees & Random Forest",
            "Linear & Logistic Regression",
            "Support Vector Machines (SVM)",
            "Neural Networks & Deep Learning",
            "K-Means Clustering",
            "K-Nearest Neighbors (KNN)",
            "Natural Language Processing (NLP)",
            "Model Evaluation & Metrics",
        ],
    ),
]


def make_topic_id(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


class TopicCatalog:
    """In-memory catalog of placement topics and their subtopics."""

    def __init__(self, topics: list[Topic] | None = None):
        self._lock = threading.Lock()
        self._topics: dict[str, Topic] = {}
        for topic in topics if topics is not None else DEFAULT_TOPICS:
            self._topics[topic.id] = topic.model_copy(deep=True)

    def get_all_topics(self) -> list[Topic]:
        with self._lock:
            return [t.model_copy(deep=True) for t in self._topics.values()]

    def get_topic_names(self) -> list[str]:
        with self._lock:
            return [t.name for t in self._topics.values()]

    def get_topic(self, topic_id: str) -> Topic | None:
        with self._lock:
            topic = self._topics.get(topic_id)
            return topic.model_copy(deep=True) if topic else None

    def find_topic_by_name(self, name: str) -> Topic | None:
        needle = name.lower()
        with self._lock:
            for topic in self._topics.values():
                if needle in topic.name.lower():
                    return topic.model_copy(deep=True)
        return None

    def add_topic(
        self,
        name: str,
        description: str | None = None,
        subtopics: list[str] | None = None,
    ) -> Topic:
        name = (name or "").strip()
        if not name:
            raise ValueError("Topic name is required")

        topic_id = make_topic_id(name)
        if not topic_id:
            raise ValueError(f"Cannot derive a topic id from {name!r}")

        topic = Topic(
            id=topic_id,
            name=name,
            description=(description or "").strip() or f"{name} - placement preparation topic",
            subtopics=[s.strip() for s in subtopics or [] if s and s.strip()],
        )

        with self._lock:
            if topic_id in self._topics:
                raise ValueError(f"Topic already exists: {topic_id}")
            self._topics[topic_id] = topic

        logger.info("Added topic '%s' with %d subtopics", topic_id, len(topic.subtopics))
        return topic.model_copy(deep=True)

    def add_subtopic(self, topic_id: str, subtopic: str) -> Topic:
        subtopic = (subtopic or "").strip()
        if not subtopic:
            raise ValueError("Subtopic name is required")

        with self._lock:
            topic = self._topics.get(topic_id)
            if topic is None:
                raise KeyError(topic_id)
            topic.subtopics.append(subtopic)
            updated = topic.model_copy(deep=True)

        logger.info("Added subtopic '%s' to '%s'", subtopic, topic_id)
        return updated

    def to_context_string(self) -> str:
        """Flatten the catalog into one "• name: subtopics" line per topic."""
        with self._lock:
            return "\n".join(
                f"• {t.name}: {', '.join(t.subtopics)}"
                for t in self._topics.values()
            )


_catalog: TopicCatalog | None = None
_catalog_lock = threading.Lock()


def get_catalog() -> TopicCatalog:
    global _catalog
    if _catalog is None:
        with _catalog_lock:
            if _catalog is None:
                _catalog = TopicCatalog()
    return _catalog
