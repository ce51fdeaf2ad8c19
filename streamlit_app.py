from __future__ import annotations

import os

import requests
import streamlit as st

st.set_page_config(page_title="MediCare Hospital - Front desk", layout="wide")

API_BASE = os.getenv("API_BASE", "http://127.0.0.1:3000")



# HTTP client

class ApiError(Exception):
    pass


def _raise_for_error(r: requests.Response) -> None:
    if r.status_code >= 400:
        try:
            msg = r.json().get("error") or r.text
        except ValueError:
            msg = r.text
        raise ApiError(f"{r.status_code}: {msg}")


def api_get(path: str) -> dict | list:
    r = requests.get(f"{API_BASE}{path}", timeout=10)
    _raise_for_error(r)
    return r.json()


def api_send(method: str, path: str, data: dict, photo=None) -> dict:
    """
    Without a photo the body goes as JSON, with a photo as multipart
    (the backend accepts both on POST /api/patients and PUT /api/patients/{id}).
    """
    if photo is None:
        r = requests.request(method, f"{API_BASE}{path}", json=data, timeout=30)
    else:
        files = {"profilePicture": (photo.name, photo.getvalue(), photo.type)}
        r = requests.request(method, f"{API_BASE}{path}", data=data, files=files, timeout=30)
    _raise_for_error(r)
    return r.json()


def api_delete(path: str) -> dict:
    r = requests.delete(f"{API_BASE}{path}", timeout=10)
    _raise_for_error(r)
    return r.json()



# Sidebar

with st.sidebar:
    st.header("MediCare Hospital")
    st.caption(f"API: {API_BASE}")



# UI

st.title("Front desk")

tab1, tab2, tab3 = st.tabs(["Registration", "Patients", "Contact"])



# TAB 1 - Registration

with tab1:
    st.subheader("Register a patient")

    c1, c2 = st.columns(2)
    name = c1.text_input("Name", key="reg_name")
    email = c2.text_input("Email", key="reg_email")
    phone = c1.text_input("Phone", key="reg_phone")
    photo = c2.file_uploader("Profile picture (optional)", type=["png", "jpg", "jpeg", "gif", "webp"], key="reg_photo")

    if st.button("Register", key="reg_submit"):
        if not name.strip() or not email.strip() or not phone.strip():
            st.error("Name, email, and phone are required.")
        else:
            try:
                res = api_send(
                    "POST",
                    "/api/patients",
                    {"name": name.strip(), "email": email.strip(), "phone": phone.strip()},
                    photo=photo,
                )
                st.success(f"{res.get('message')} (ID: {res.get('id')})")
                if res.get("emailSent"):
                    st.info("Confirmation email sent.")
                else:
                    st.warning("Confirmation email not sent.")
            except ApiError as e:
                st.error(str(e))
            except requests.RequestException as e:
                st.error(f"API unreachable: {e}")



# TAB 2 - Patients

with tab2:
    st.subheader("Patients")

    try:
        patients = api_get("/api/patients")
    except (ApiError, requests.RequestException) as e:
        st.error(f"Error loading patients: {e}")
        patients = []

    if not patients:
        st.info("No patients registered.")

    for p in patients:
        with st.expander(f"{p['name']} | {p['email']} | {p['phone']}"):
            col_img, col_form = st.columns([1, 3])

            with col_img:
                if p.get("profile_picture"):
                    st.image(f"{API_BASE}/uploads/{p['profile_picture']}", width=120)
                st.caption(f"ID {p['id']} - registered {p.get('created_at') or '-'}")

            with col_form:
                e_name = st.text_input("Name", value=p["name"], key=f"ed_name_{p['id']}")
                e_email = st.text_input("Email", value=p["email"], key=f"ed_email_{p['id']}")
                e_phone = st.text_input("Phone", value=p["phone"], key=f"ed_phone_{p['id']}")
                e_photo = st.file_uploader("New picture (optional)", key=f"ed_photo_{p['id']}")

                b1, b2 = st.columns(2)
                if b1.button("Save", key=f"ed_save_{p['id']}"):
                    try:
                        res = api_send(
                            "PUT",
                            f"/api/patients/{p['id']}",
                            {"name": e_name.strip(), "email": e_email.strip(), "phone": e_phone.strip()},
                            photo=e_photo,
                        )
                        st.success(res.get("message"))
                        st.rerun()
                    except (ApiError, requests.RequestException) as e:
                        st.error(str(e))

                if b2.button("Delete", key=f"ed_del_{p['id']}"):
                    try:
                        api_delete(f"/api/patients/{p['id']}")
                        st.rerun()
                    except (ApiError, requests.RequestException) as e:
                        st.error(str(e))



# TAB 3 - Contact

with tab3:
    st.subheader("Contact message")

    c_name = st.text_input("Name", key="ct_name")
    c_email = st.text_input("Email", key="ct_email")
    c_message = st.text_area("Message", height=120, key="ct_message")

    if st.button("Send", key="ct_submit"):
        if not c_name.strip() or not c_email.strip() or not c_message.strip():
            st.error("Name, email, and message are required.")
        else:
            try:
                res = api_send("POST", "/api/contact", {"name": c_name, "email": c_email, "message": c_message})
                st.success(res.get("message"))
            except (ApiError, requests.RequestException) as e:
                st.error(str(e))
