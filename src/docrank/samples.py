"""Built-in Spring documentation used to seed a fresh index."""

from __future__ import annotations

import logging
from typing import List, NamedTuple

from docrank.index.indexer import Indexer
from docrank.models import DocumentChunk

LOGGER = logging.getLogger(__name__)


class SampleDocument(NamedTuple):
    title: str
    content: str
    url: str
    source: str
    version: str
    category: str


SAMPLE_DOCUMENTS: tuple[SampleDocument, ...] = (
    SampleDocument(
        "Spring Boot Auto-Configuration",
        "Spring Boot auto-configuration attempts to automatically configure your Spring "
        "application based on the jar dependencies that you have added. For example, if "
        "HSQLDB is on your classpath, and you have not manually configured any database "
        "connection beans, then Spring Boot auto-configures an in-memory database. "
        "@EnableAutoConfiguration annotation enables auto-configuration. You can exclude "
        "specific auto-configuration classes using exclude attribute.",
        "https://docs.spring.io/spring-boot/docs/current/reference/html/features.html"
        "#features.developing-auto-configuration",
        "spring-boot",
        "3.2.0",
        "core",
    ),
    SampleDocument(
        "Spring Security Configuration",
        "Spring Security provides comprehensive security services for Java EE-based "
        "enterprise software applications. The @EnableWebSecurity annotation enables Spring "
        "Security's web security support and provides the Spring MVC integration. To "
        "configure Spring Security, you need to create a configuration class that extends "
        "WebSecurityConfigurerAdapter or implements WebSecurityConfigurer interface.",
        "https://docs.spring.io/spring-security/reference/servlet/configuration/java.html",
        "spring-security",
        "6.1.0",
        "configuration",
    ),
    SampleDocument(
        "Spring Data JPA Repositories",
        "Spring Data JPA provides repository support for the Java Persistence API (JPA). It "
        "eases development of applications that need to access JPA data sources. The "
        "@Repository annotation indicates that the decorated class is a repository. You can "
        "extend JpaRepository interface to get basic CRUD operations. Query methods are "
        "automatically implemented based on method names.",
        "https://docs.spring.io/spring-data/jpa/docs/current/reference/html/#repositories",
        "spring-data",
        "3.1.0",
        "repositories",
    ),
    SampleDocument(
        "Spring Boot Testing",
        "Spring Boot provides excellent testing support with @SpringBootTest annotation. This "
        "annotation creates an ApplicationContext that is used in your tests. "
        "@TestConfiguration allows you to define additional configuration for tests. "
        "@MockBean annotation can be used to add mock objects to the Spring "
        "ApplicationContext. WebMvcTest is used for testing Spring MVC controllers.",
        "https://docs.spring.io/spring-boot/docs/current/reference/html/features.html"
        "#features.testing",
        "spring-boot",
        "3.2.0",
        "testing",
    ),
    SampleDocument(
        "Spring Boot Actuator",
        "Spring Boot Actuator provides production-ready features to help you monitor and "
        "manage your application. Actuator endpoints let you monitor and interact with your "
        "application. Built-in endpoints include health, metrics, info, beans, env, and many "
        "more. You can expose endpoints over HTTP or JMX. Custom endpoints can be created "
        "using @Endpoint annotation.",
        "https://docs.spring.io/spring-boot/docs/current/reference/html/actuator.html",
        "spring-boot",
        "3.2.0",
        "actuator",
    ),
)


def load_sample_documentation(indexer: Indexer) -> List[DocumentChunk]:
    chunks = [
        indexer.ingest_text(
            sample.title,
            sample.content,
            sample.source,
            sample.url,
            version=sample.version,
            category=sample.category,
        )
        for sample in SAMPLE_DOCUMENTS
    ]
    LOGGER.info("Initialized %d sample documentation chunks", len(chunks))
    return chunks
