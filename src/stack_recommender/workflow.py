"""Workflow builder: maps a stack onto the seven workflow phases.

For each phase, picks the stack tool that covers it and describes what AI
and humans do there under the company's automation philosophy.
"""

from typing import Optional

from tool_catalog.schema import Tool, ToolCategory, WorkflowPhase

from .phases import DEFAULT_MULTI_PHASE_TOOLS
from .schema import AutomationPhilosophy, GeneratedWorkflow, WorkflowStep


# Preferred categories per phase for picking the covering tool
PHASE_TOOL_PREFERENCES = {
    WorkflowPhase.DISCOVER: [
        ToolCategory.DOCUMENTATION, ToolCategory.AI_ASSISTANTS, ToolCategory.COMMUNICATION, ToolCategory.GROWTH,
    ],
    WorkflowPhase.DECIDE: [ToolCategory.PROJECT_MANAGEMENT, ToolCategory.DOCUMENTATION, ToolCategory.AI_ASSISTANTS],
    WorkflowPhase.DESIGN: [ToolCategory.DESIGN, ToolCategory.AI_BUILDERS],
    WorkflowPhase.BUILD: [
        ToolCategory.DEVELOPMENT, ToolCategory.AI_BUILDERS, ToolCategory.AI_ASSISTANTS, ToolCategory.PROJECT_MANAGEMENT,
    ],
    WorkflowPhase.LAUNCH: [
        ToolCategory.DEVELOPMENT, ToolCategory.AUTOMATION, ToolCategory.COMMUNICATION, ToolCategory.ANALYTICS,
    ],
    WorkflowPhase.REVIEW: [ToolCategory.MEETINGS, ToolCategory.COMMUNICATION, ToolCategory.ANALYTICS],
    WorkflowPhase.ITERATE: [
        ToolCategory.ANALYTICS, ToolCategory.GROWTH, ToolCategory.PROJECT_MANAGEMENT, ToolCategory.DOCUMENTATION,
    ],
}

# Phases a multi-phase hub can stand in for
HUB_PHASES = {WorkflowPhase.DISCOVER, WorkflowPhase.DECIDE, WorkflowPhase.ITERATE}

FALLBACK_TOOL_NAMES = {
    WorkflowPhase.DISCOVER: "Documentation Tool",
    WorkflowPhase.DECIDE: "Project Management Tool",
    WorkflowPhase.DESIGN: "Design Tool",
    WorkflowPhase.BUILD: "Development Tool",
    WorkflowPhase.LAUNCH: "Deployment Tool",
    WorkflowPhase.REVIEW: "Meeting Tool",
    WorkflowPhase.ITERATE: "Analytics Tool",
}

# Weekly hours spent per phase, and the AI share of that time by philosophy
BASE_WEEKLY_HOURS = {
    WorkflowPhase.DISCOVER: 3,
    WorkflowPhase.DECIDE: 3,
    WorkflowPhase.DESIGN: 5,
    WorkflowPhase.BUILD: 20,
    WorkflowPhase.LAUNCH: 3,
    WorkflowPhase.REVIEW: 3,
    WorkflowPhase.ITERATE: 2,
}
AI_TIME_SHARE = {
    AutomationPhilosophy.AUTO_PILOT: 0.8,
    AutomationPhilosophy.HYBRID: 0.5,
    AutomationPhilosophy.CO_PILOT: 0.2,
}

# phase -> philosophy -> (ai role, human role, outcome, time per week)
PHASE_ROLES = {
    WorkflowPhase.DISCOVER: {
        AutomationPhilosophy.AUTO_PILOT: (
            "Autonomous idea generation from market data, user feedback, and competitor analysis",
            "Strategic prioritization and approval of AI-generated concepts",
            "AI-curated feature backlog with market validation scores",
            "1-2 hrs",
        ),
        AutomationPhilosophy.HYBRID: (
            "Generate initial ideas, draft PRDs, suggest user stories",
            "Brainstorm with team, refine AI drafts, set vision",
            "Collaborative feature backlog with team input",
            "3-4 hrs",
        ),
        AutomationPhilosophy.CO_PILOT: (
            "Provide templates, surface relevant examples",
            "Lead ideation sessions, create initial concepts",
            "Human-driven feature backlog",
            "5-6 hrs",
        ),
    },
    WorkflowPhase.DECIDE: {
        AutomationPhilosophy.AUTO_PILOT: (
            "Auto-generate specs, create and assign tickets, estimate complexity",
            "Approve generated artifacts, adjust edge cases",
            "Sprint-ready backlog with auto-assigned tasks",
            "1-2 hrs",
        ),
        AutomationPhilosophy.HYBRID: (
            "Draft specifications, suggest task breakdowns, flag risks",
            "Review and refine specs, make architectural decisions",
            "Detailed project plan with human oversight",
            "2-3 hrs",
        ),
        AutomationPhilosophy.CO_PILOT: (
            "Assist with documentation, format templates",
            "Create specifications, plan sprints, assign work",
            "Human-authored project plan",
            "4-5 hrs",
        ),
    },
    WorkflowPhase.DESIGN: {
        AutomationPhilosophy.AUTO_PILOT: (
            "Generate UI mockups from specs, create design variations, build prototypes",
            "Review designs, ensure brand consistency, approve specs",
            "AI-generated design specs with human approval",
            "2-3 hrs",
        ),
        AutomationPhilosophy.HYBRID: (
            "Suggest layouts, auto-generate component variants, assist with prototyping",
            "Create wireframes, refine AI-generated designs, build interactions",
            "Collaborative design with AI-assisted prototypes",
            "4-6 hrs",
        ),
        AutomationPhilosophy.CO_PILOT: (
            "Provide design templates, auto-layout assistance",
            "Lead design process, create all wireframes and prototypes",
            "Human-designed prototypes with AI assist",
            "8-10 hrs",
        ),
    },
    WorkflowPhase.BUILD: {
        AutomationPhilosophy.AUTO_PILOT: (
            "Generate code implementations, run tests, open pull requests",
            "Code review, quality gates, complex problem-solving",
            "AI-generated implementation with human QA",
            "10-15 hrs",
        ),
        AutomationPhilosophy.HYBRID: (
            "Pair programming, suggest implementations, automate boilerplate",
            "Write core logic, make design decisions, debug",
            "Human-AI collaborative codebase",
            "20-25 hrs",
        ),
        AutomationPhilosophy.CO_PILOT: (
            "Code completion, syntax suggestions, linting",
            "Write all code, make all technical decisions",
            "Human-written implementation with AI assist",
            "30-40 hrs",
        ),
    },
    WorkflowPhase.LAUNCH: {
        AutomationPhilosophy.AUTO_PILOT: (
            "Auto-deploy to staging and production, run smoke tests, notify channels",
            "Approve production deploys, monitor rollout health",
            "Automated deployment with monitoring",
            "1-2 hrs",
        ),
        AutomationPhilosophy.HYBRID: (
            "Prepare deployment configs, run pre-flight checks, draft announcements",
            "Trigger deploys, verify health checks, coordinate launch",
            "Semi-automated deployment with human oversight",
            "2-3 hrs",
        ),
        AutomationPhilosophy.CO_PILOT: (
            "Assist with deployment scripts, surface deployment checklists",
            "Manage full deployment process, coordinate launch",
            "Human-managed deployment with AI tooling",
            "3-4 hrs",
        ),
    },
    WorkflowPhase.REVIEW: {
        AutomationPhilosophy.AUTO_PILOT: (
            "Auto-summarize meetings, generate stakeholder reports, track feedback",
            "Present to stakeholders, make strategic decisions",
            "Auto-generated review documentation",
            "1-2 hrs",
        ),
        AutomationPhilosophy.HYBRID: (
            "Transcribe meetings, draft summaries, organize feedback",
            "Conduct reviews, gather qualitative feedback",
            "Comprehensive review with AI organization",
            "2-3 hrs",
        ),
        AutomationPhilosophy.CO_PILOT: (
            "Record and transcribe meetings",
            "Run demos, collect and synthesize feedback",
            "Human-led review process",
            "3-4 hrs",
        ),
    },
    WorkflowPhase.ITERATE: {
        AutomationPhilosophy.AUTO_PILOT: (
            "Analyze metrics, identify patterns, auto-create improvement tickets",
            "Strategic prioritization, long-term planning",
            "Data-driven iteration roadmap",
            "1-2 hrs",
        ),
        AutomationPhilosophy.HYBRID: (
            "Generate analytics reports, suggest improvements",
            "Interpret data, decide on next iterations",
            "Informed iteration plan",
            "2-3 hrs",
        ),
        AutomationPhilosophy.CO_PILOT: (
            "Surface relevant metrics and data",
            "Analyze data, plan all iterations",
            "Human-analyzed iteration plan",
            "4-5 hrs",
        ),
    },
}


def select_tool_for_phase(
    tools: list[Tool],
    phase: WorkflowPhase,
    phase_map: Optional[dict[WorkflowPhase, list[ToolCategory]]] = None,
) -> Optional[Tool]:
    """The stack tool that covers phase, or None for an empty stack."""
    preferred = (phase_map or {}).get(phase) or PHASE_TOOL_PREFERENCES[phase]
    for category in preferred:
        match = next((t for t in tools if t.category == category), None)
        if match:
            return match

    if phase in HUB_PHASES:
        hub = next((t for t in tools if t.name.lower() in DEFAULT_MULTI_PHASE_TOOLS), None)
        if hub:
            return hub

    return tools[0] if tools else None


def build_workflow(
    tools: list[Tool],
    philosophy: AutomationPhilosophy,
    phase_map: Optional[dict[WorkflowPhase, list[ToolCategory]]] = None,
) -> GeneratedWorkflow:
    """Build the seven-phase workflow for a stack.

    Args:
        tools: The scenario's final stack
        philosophy: Company automation philosophy (drives roles and time split)
        phase_map: Optional resolved phase -> category preferences

    Returns:
        One step per phase plus the weekly human/AI time split
    """
    steps = []
    human_hours = 0.0
    ai_hours = 0.0
    ai_share = AI_TIME_SHARE[philosophy]

    for phase in WorkflowPhase:
        tool = select_tool_for_phase(tools, phase, phase_map)
        ai_role, human_role, outcome, time_per_week = PHASE_ROLES[phase][philosophy]

        steps.append(WorkflowStep(
            phase=phase,
            phase_name=phase.display_name,
            tool_id=tool.id if tool else None,
            tool_name=tool.display_name if tool else FALLBACK_TOOL_NAMES[phase],
            ai_agent_role=ai_role,
            human_role=human_role,
            outcome=outcome,
            estimated_time_per_week=time_per_week,
        ))

        base = BASE_WEEKLY_HOURS[phase]
        human_hours += base * (1 - ai_share)
        ai_hours += base * ai_share

    total = human_hours + ai_hours
    return GeneratedWorkflow(
        steps=steps,
        weekly_human_hours=round(human_hours, 1),
        weekly_ai_hours=round(ai_hours, 1),
        automation_percentage=int(ai_hours / total * 100 + 0.5) if total else 0,
    )
