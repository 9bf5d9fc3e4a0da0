"""
Real HTTP integration clients.

These clients talk to the hosted Supabase project over HTTP:
- PostgREST rows of the shared catalog table
- GoTrue password sign-in / sign-up

Important:
- Must implement the same interfaces as the local clients
- Must return data shaped according to careguard/integrations/contracts/*
"""
