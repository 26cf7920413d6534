"""
Recipe Archive - Streamlit Frontend Main Entry Point.

This is the archive page: a folder sidebar, search and filters on top, and the recipe
cards below. All reads and writes go through recipe_archive.RecipeCoordinator; this file
only renders state and turns clicks into coordinator calls.

Run with:
    streamlit run streamlit_app/app.py
"""

import sys
from pathlib import Path

# Ensure the streamlit_app directory is in the Python path
# This allows imports to work regardless of how the app is run
streamlit_app_dir = Path(__file__).parent
if str(streamlit_app_dir) not in sys.path:
    sys.path.insert(0, str(streamlit_app_dir))

# Add project root to path so we can import recipe_archive
project_root = streamlit_app_dir.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# Import config early to load .env file before any other code accesses environment variables
import recipe_archive.config  # noqa: F401

import logging
from collections import Counter
from dataclasses import replace
from typing import Optional

import streamlit as st

from recipe_archive.coordinator import RecipeCoordinator
from recipe_archive.errors import RecipeClientError
from recipe_archive.filtering import UNCATEGORIZED_KEY, count_recipes_by_category, paginate
from recipe_archive.models import Recipe
from recipe_archive.parsing import parse_recipe_sections
from recipe_archive.preferences import ALLOWED_VIEW_MODES, VIEW_MODE_GRID
from recipe_archive.session import login
from recipe_archive.tree import CategoryTree
from recipe_archive.users import UserDirectory
from ui.feedback import report_error, show_empty_state, working_spinner
from utils.state import (
    clear_session,
    get_coordinator,
    get_filter,
    get_preferences,
    get_session,
    get_store,
    set_filter,
    set_preferences,
    set_session,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(
    page_title="Rezeptarchiv",
    page_icon="📖",
    layout="wide",
    initial_sidebar_state="expanded",
)

if "visible_pages" not in st.session_state:
    st.session_state["visible_pages"] = 1


def folder_label(tree: CategoryTree, category_id: Optional[str]) -> str:
    """Breadcrumb label for a folder, so folders sharing a name stay distinguishable."""
    if category_id is None:
        return "Ohne Ordner"
    chain = tree.path(category_id)
    if not chain:
        return f"Unbekannter Ordner ({category_id})"
    return " / ".join(c.name for c in chain)


def render_login() -> None:
    session = get_session()
    if session.user:
        st.caption(f"Angemeldet als **{session.user.name}** ({session.role.value})")
        if st.button("Abmelden", use_container_width=True):
            clear_session()
            st.rerun()
        return

    with st.form("login"):
        username = st.text_input("Benutzername")
        password = st.text_input("Passwort", type="password")
        if st.form_submit_button("Anmelden", use_container_width=True):
            try:
                set_session(login(username, password, store=get_store()))
                st.rerun()
            except RecipeClientError as e:
                report_error(e)


def render_folders(coordinator: RecipeCoordinator) -> None:
    tree = coordinator.tree
    counts = count_recipes_by_category(coordinator.recipes.recipes, tree)
    current = get_filter()

    if st.button(f"Alle Rezepte ({len(coordinator.recipes)})", use_container_width=True):
        set_filter(replace(current, selected_category_id=None))
        st.rerun()

    for main in tree.get_main_categories():
        label = f"{main.name} ({counts.get(main.id, 0)})"
        if st.button(label, key=f"folder-{main.id}", use_container_width=True):
            set_filter(replace(current, selected_category_id=main.id))
            st.rerun()
        for sub in tree.get_subcategories(main.id):
            sub_label = f"↳ {sub.name} ({counts.get(sub.id, 0)})"
            if st.button(sub_label, key=f"folder-{sub.id}", use_container_width=True):
                set_filter(replace(current, selected_category_id=sub.id))
                st.rerun()

    st.caption(f"Ohne Ordner: {counts.get(UNCATEGORIZED_KEY, 0)}")
    if coordinator.categories.from_backup:
        st.caption("Ordner aus dem lokalen Speicher (Server nicht erreichbar)")

    if get_session().is_guest:
        return

    with st.expander("Neuer Ordner"):
        with st.form("new-folder", clear_on_submit=True):
            name = st.text_input("Name")
            parents = [None] + [c.id for c in tree.get_main_categories()]
            parent_id = st.selectbox(
                "Übergeordneter Ordner", parents,
                format_func=lambda category_id: "Keiner" if category_id is None else folder_label(tree, category_id),
            )
            if st.form_submit_button("Erstellen"):
                try:
                    with working_spinner("Ordner wird erstellt…"):
                        coordinator.create_category(name, parent_id=parent_id)
                    st.rerun()
                except RecipeClientError as e:
                    report_error(e)

    selected = tree.get(current.selected_category_id)
    if selected and get_session().is_admin:
        with st.expander(f"Ordner „{selected.name}“ bearbeiten"):
            new_name = st.text_input("Neuer Name", value=selected.name, key="rename-folder")
            if st.button("Umbenennen"):
                try:
                    coordinator.rename_category(selected.id, new_name)
                    st.rerun()
                except RecipeClientError as e:
                    report_error(e)
            if st.button("Löschen", type="primary"):
                try:
                    with working_spinner("Ordner wird gelöscht…"):
                        moved = coordinator.delete_category(selected.id)
                    set_filter(replace(current, selected_category_id=None))
                    st.toast(f"Ordner gelöscht, {len(moved)} Rezept(e) ohne Ordner")
                    st.rerun()
                except RecipeClientError as e:
                    report_error(e)


def render_filters(directory: UserDirectory) -> None:
    current = get_filter()
    prefs = get_preferences()
    col_search, col_user, col_fav, col_view = st.columns([4, 2, 1, 1])

    with col_search:
        query = st.text_input("Suche", value=current.search_query, placeholder="Titel oder Text…")
    with col_user:
        active = directory.list_active()
        name_counts = Counter(u.name for u in active)
        labels = {u.id: u.name if name_counts[u.name] == 1 else f"{u.name} ({u.id})" for u in active}
        owners = [None] + list(labels)
        if current.selected_user_id not in owners:
            owners.append(current.selected_user_id)
        selected_user_id = st.selectbox(
            "Erstellt von", owners, index=owners.index(current.selected_user_id),
            format_func=lambda user_id: "Alle" if user_id is None else labels.get(user_id, user_id),
        )
    with col_fav:
        favorites_only = st.toggle("Favoriten", value=current.favorites_only)
    with col_view:
        view_mode = st.radio("Ansicht", ALLOWED_VIEW_MODES, index=ALLOWED_VIEW_MODES.index(prefs.view_mode))

    updated = replace(
        current,
        search_query=query,
        selected_user_id=selected_user_id,
        favorites_only=favorites_only,
    )
    if updated != current:
        set_filter(updated)
        st.session_state["visible_pages"] = 1
    if view_mode != prefs.view_mode:
        set_preferences(replace(prefs, view_mode=view_mode))


def render_recipe(coordinator: RecipeCoordinator, recipe: Recipe, directory: UserDirectory) -> None:
    session = get_session()
    with st.container(border=True):
        if recipe.image and recipe.image.startswith("http"):
            st.image(recipe.image, use_container_width=True)
        st.markdown(f"**{recipe.title}**")
        st.caption(
            f"{folder_label(coordinator.tree, recipe.category_id)} · "
            f"{directory.display_name(recipe.user_id)} · {recipe.status.value}"
        )

        with st.expander("Rezept anzeigen"):
            for section in parse_recipe_sections(recipe.analysis).sections:
                st.markdown(section)

        col_fav, col_move, col_delete = st.columns(3)
        with col_fav:
            star = "★" if recipe.is_favorite else "☆"
            if session.user and st.button(star, key=f"fav-{recipe.id}"):
                try:
                    coordinator.toggle_favorite(recipe.id)
                    st.rerun()
                except RecipeClientError as e:
                    report_error(e)
        if not session.can_edit_recipe(recipe):
            return
        with col_move:
            options = [None] + [c.id for c in coordinator.tree]
            if recipe.category_id not in options:
                options.append(recipe.category_id)
            target = st.selectbox(
                "Ordner", options, index=options.index(recipe.category_id), key=f"move-{recipe.id}",
                format_func=lambda category_id: folder_label(coordinator.tree, category_id),
                label_visibility="collapsed",
            )
            if st.button("Verschieben", key=f"move-confirm-{recipe.id}") and target != recipe.category_id:
                try:
                    coordinator.move_recipe(recipe.id, target)
                    st.rerun()
                except RecipeClientError as e:
                    report_error(e)
        with col_delete:
            if st.button("🗑", key=f"delete-{recipe.id}"):
                try:
                    coordinator.delete_recipe(recipe.id)
                    st.rerun()
                except RecipeClientError as e:
                    report_error(e)


def main() -> None:
    with st.sidebar:
        st.markdown("### 📖 **Rezeptarchiv**")
        render_login()
        st.divider()

    try:
        with working_spinner("Archiv wird geladen…"):
            coordinator = get_coordinator()
    except RecipeClientError as e:
        report_error(e)
        return

    directory = UserDirectory()
    with st.sidebar:
        render_folders(coordinator)

    st.title("Rezeptarchiv")
    st.caption(f"{coordinator.favorites_count} Favoriten")
    render_filters(directory)

    current = get_filter()
    if current.is_searching and current.selected_category_id:
        st.caption("Die Suche umfasst alle Ordner.")

    visible = current.apply(coordinator.recipes.recipes, coordinator.tree)
    if not visible:
        show_empty_state("Keine Rezepte gefunden", "Passe die Filter an oder wähle einen anderen Ordner.")
        return

    page_size = coordinator.recipes.page_size
    shown, has_more = paginate(visible, 1, page_size * st.session_state["visible_pages"])
    columns = 3 if get_preferences().view_mode == VIEW_MODE_GRID else 1
    grid = st.columns(columns)
    for index, recipe in enumerate(shown):
        with grid[index % columns]:
            render_recipe(coordinator, recipe, directory)

    if has_more and st.button("Mehr laden", use_container_width=True):
        st.session_state["visible_pages"] += 1
        st.rerun()


main()
