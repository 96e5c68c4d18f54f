"""Skill names offered on the additional-skills picker, grouped by area.

Names match the skill keys the recommendations backend scores against.
"""

SKILL_CATALOG: dict[str, tuple[str, ...]] = {
    "Frontend / UI": (
        "Accessibility", "Testing", "Performance", "DesignSystems", "Architecture", "UI",
    ),
    "Backend / General Dev": (
        "APIs", "Caching", "NoSQL", "DistributedSystems", "Security", "Go",
        "Observability", "DevOps",
    ),
    "DevOps / Cloud / Infra": (
        "Linux", "Git", "CI/CD", "Docker", "Kubernetes", "Terraform", "Monitoring",
        "Networking", "Scripting", "SRE", "IncidentResponse", "CapacityPlanning",
        "Automation", "CostOptimization", "MultiCloud", "IAM", "CloudSecurity",
        "ChaosEngineering", "CloudNetworking",
    ),
    "Data / Analytics / ML": (
        "DataViz", "Statistics", "Dashboards", "Modeling", "DBT", "CloudData", "ML",
        "MLOps", "Experimentation", "DataPipelines", "DeepLearning",
    ),
    "Cybersecurity": (
        "SIEM", "ThreatHunting", "IR", "ThreatModeling", "VulnAssessment",
        "WebSecurity", "Exploitation", "ADSecurity", "Reporting", "RedTeamOps",
        "Evasion", "ToolingDev", "ThreatIntel", "PurpleTeam", "GRC",
    ),
    "Networking": ("RoutingSwitching", "Firewalls", "SDWAN"),
    "Database": ("BackupRecovery", "PerformanceTuning", "Governance"),
    "QA / Testing": (
        "TestCases", "BugReporting", "Selenium", "API-Testing", "Cypress", "Strategy",
        "PerformanceTesting", "SecurityTesting",
    ),
    "IT Support / SysAdmin": (
        "CustomerService", "Troubleshooting", "Windows", "MacOS", "MDM", "SLA",
        "Virtualization",
    ),
    "Mobile": (
        "ReactNative", "Flutter", "iOS", "Android", "ReleaseEngineering", "UXFocus",
    ),
    "Product / Project": (
        "Communication", "Analytics", "Roadmapping", "StakeholderMgmt",
        "Prioritization", "Finance", "Agile", "Scheduling", "RiskBasics", "Jira",
        "RiskMgmt", "Budgeting", "TechnicalFluency", "ProgramMgmt", "Negotiation",
        "PeopleMgmt",
    ),
    "Business Analysis": ("Requirements", "DomainKnowledge"),
    "Software Engineering": ("Programming", "DesignPatterns"),
    "AI / Research": ("PaperReview", "Optimization", "Causality", "Publications"),
    "Leadership": ("Leadership",),
}

COMBINED_SKILL_SPLITS: dict[str, tuple[str, ...]] = {
    "HTML/CSS": ("HTML", "CSS"),
}
"""Picker entries that the backend scores as separate skills."""


def all_skill_names() -> list[str]:
    """Flattened catalog in display order, without duplicates."""
    seen: dict[str, None] = {}
    for names in SKILL_CATALOG.values():
        for name in names:
            seen.setdefault(name, None)
    return list(seen)
