"""
Static Menu Configuration

Built-in menus and menu locations. Served by the server when the menu
repository cannot be read, and used by clients as the last-resort view when
neither the cache nor the network can provide one.
"""

from typing import Any

DEFAULT_CACHE_VERSION = "static"

DEFAULT_MENUS: dict[str, dict[str, Any]] = {
    "main": {
        "id": "main",
        "items": [
            {"id": "dashboard", "label": "Dashboard", "href": "/dashboard"},
            {"id": "world-leaderboard", "label": "World Leaderboard", "href": "/leaderboard"},
            {
                "id": "league",
                "label": "League",
                "requiresLeague": True,
                "children": [
                    {"id": "league-submit", "label": "Submit Steps", "href": "/submit-steps"},
                    {"id": "league-leaderboard", "label": "Leaderboard", "href": "/league/[id]/leaderboard"},
                    {"id": "league-analytics", "label": "Analytics", "href": "/league/[id]/analytics"},
                ],
            },
            {
                "id": "actions",
                "label": "Actions",
                "children": [
                    {"id": "create-league", "label": "Create League", "href": "/league/create"},
                    {"id": "join-league", "label": "Join League", "href": "/join"},
                ],
            },
        ],
    },
    "help": {
        "id": "help",
        "label": "Help",
        "items": [
            {"id": "feedback", "label": "Send Feedback", "href": "/feedback"},
            {"id": "roadmap", "label": "Roadmap", "href": "/roadmap"},
            {"id": "beta-info", "label": "Beta Info", "href": "/beta"},
        ],
    },
    "user": {
        "id": "user",
        "items": [
            {"id": "profile-settings", "label": "Profile Settings", "href": "/settings/profile"},
            {"id": "sign-out", "label": "Sign Out", "onClick": "signOut"},
        ],
    },
    "public": {
        "id": "public",
        "items": [
            {"id": "public-features", "label": "Features", "href": "/#features"},
            {"id": "public-roadmap", "label": "Roadmap", "href": "/roadmap"},
            {"id": "public-beta", "label": "Beta Info", "href": "/beta"},
        ],
    },
    "footerNavigation": {
        "id": "footer-navigation",
        "label": "Navigation",
        "items": [
            {"id": "footer-dashboard", "label": "Dashboard", "href": "/dashboard"},
            {"id": "footer-leaderboard", "label": "World Leaderboard", "href": "/leaderboard"},
        ],
    },
    "footerLegal": {
        "id": "footer-legal",
        "label": "Legal",
        "items": [
            {"id": "footer-terms", "label": "Terms of Service", "href": "/terms"},
            {"id": "footer-privacy", "label": "Privacy Policy", "href": "/privacy"},
        ],
    },
}

DEFAULT_MENU_LOCATIONS: dict[str, dict[str, Any]] = {
    "public_header": {
        "menus": ["public"],
        "showLogo": True,
        "showSignIn": True,
        "showUserMenu": True,
        "showAdminMenu": True,
    },
    "app_header": {
        "menus": ["main", "help"],
        "showLogo": True,
        "showSignIn": True,
        "showUserMenu": True,
        "showAdminMenu": True,
    },
    "footer": {
        "menus": ["footerNavigation", "footerLegal"],
        "showLogo": True,
        "showSignIn": False,
        "showUserMenu": False,
        "showAdminMenu": False,
    },
}
